from __future__ import annotations

from crew_attendance.attendance.model import EXTRA_TABLE
from crew_attendance.core.enums import MutationKind, SessionType
from crew_attendance.sessions.model import Session
from crew_attendance.sessions.service import SessionService
from crew_attendance.sessions.store import SessionStore
from crew_attendance.sessions.ticker import ElapsedTicker, elapsed_since
from crew_attendance.timesheets.model import CrewEvent

from fakes import CREW_ID, WAREHOUSE, at, location


class NoopTicker:
    def __init__(self):
        self.running = False

    def start(self):
        self.running = True

    def reset(self):
        self.running = False

    def tick(self, now=None):
        pass


def make_service(attendance_repo, timesheets_repo, warehouses_repo, offline_queue=None):
    return SessionService(
        CREW_ID,
        attendance_repo,
        timesheets_repo,
        warehouses_repo,
        ticker=NoopTicker(),
        offline=offline_queue,
    )


def test_load_collects_warehouse_extra_and_event_sessions(attendance_repo, timesheets_repo, warehouses_repo):
    timesheets_repo.add_event(CrewEvent(id="ev-1", title="Concerto", start_date="2024-05-10"))
    extra_id = attendance_repo.add(EXTRA_TABLE, date="2024-05-10", check_in_time="07:00", break_minutes=60)
    wh_id = attendance_repo.add(date="2024-05-10", check_in_time="08:55", shift_end_time="17:00", warehouse_id=WAREHOUSE.id)
    ev_id = timesheets_repo.add(event_id="ev-1", date="2024-05-10", start_time="18:00:00")
    attendance_repo.add(date="2024-05-09", check_in_time="08:00")
    attendance_repo.add(date="2024-05-10", check_in_time="06:00", check_out_time="07:00", status="completed")

    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)
    sessions = service.load_active_session(at("10:00"))

    assert {s.id for s in sessions} == {extra_id, wh_id, ev_id}
    assert service.current.id == wh_id
    event = next(s for s in sessions if s.type == SessionType.EVENT)
    assert (event.shift_name, event.check_in_time) == ("Concerto", "18:00")
    assert service.ticker.running


def test_reload_is_idempotent(attendance_repo, timesheets_repo, warehouses_repo):
    attendance_repo.add(date="2024-05-10", check_in_time="08:55")
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)

    first = service.load_active_session(at("10:00"))
    second = service.load_active_session(at("10:00"))

    assert first == second
    assert len(service.active_sessions) == 1


def test_record_dated_tomorrow_is_loaded(attendance_repo, timesheets_repo, warehouses_repo):
    rec_id = attendance_repo.add(date="2024-05-11", check_in_time="23:50")
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)

    service.load_active_session(at("23:55"))

    assert service.current.id == rec_id


def test_no_sessions_stops_ticker(attendance_repo, timesheets_repo, warehouses_repo):
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)
    service.ticker.start()

    assert service.load_active_session(at("10:00")) == []
    assert service.current is None
    assert not service.ticker.running


def test_manual_check_out_computes_hours_and_distance(attendance_repo, timesheets_repo, warehouses_repo):
    rec_id = attendance_repo.add(date="2024-05-10", check_in_time="09:00", break_minutes=60, warehouse_id=WAREHOUSE.id)
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)
    service.load_active_session(at("12:00"))

    assert service.manual_check_out(location=location(45.4742, 9.19), notes="  tutto ok ", now=at("17:30"))

    row = attendance_repo.row(rec_id)
    assert row["check_out_time"] == "17:30"
    assert row["status"] == "completed"
    assert (row["total_hours"], row["net_hours"]) == (8.5, 7.5)
    assert row["notes"] == "tutto ok"
    assert row["checkout_location_alert"] is True
    assert row["checkout_distance_from_warehouse"] > 1000


def test_manual_check_out_of_event_submits_entry(attendance_repo, timesheets_repo, warehouses_repo):
    entry_id = timesheets_repo.add(event_id="ev-1", date="2024-05-10", start_time="18:00")
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)
    service.load_active_session(at("19:00"))

    assert service.manual_check_out(now=at("23:15"))

    assert timesheets_repo.rows[entry_id]["end_time"] == "23:15"
    assert timesheets_repo.rows[entry_id]["status"] == "submitted"


def test_manual_check_out_without_session_is_false(attendance_repo, timesheets_repo, warehouses_repo):
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)

    assert service.manual_check_out(now=at("17:00")) is False


def test_offline_check_out_is_queued(attendance_repo, timesheets_repo, warehouses_repo, offline_queue):
    rec_id = attendance_repo.add(date="2024-05-10", check_in_time="09:00", break_minutes=60)
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo, offline_queue)
    service.load_active_session(at("12:00"))
    attendance_repo.offline = True

    assert service.manual_check_out(now=at("17:00"))

    [item] = offline_queue.pending
    assert item.kind == MutationKind.CHECKOUT
    assert item.data["id"] == rec_id
    assert item.data["updates"]["net_hours"] == 7.0


def test_offline_extra_check_out_is_not_queued(attendance_repo, timesheets_repo, warehouses_repo, offline_queue):
    attendance_repo.add(EXTRA_TABLE, date="2024-05-10", check_in_time="09:00")
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo, offline_queue)
    service.load_active_session(at("12:00"))
    attendance_repo.offline = True

    assert service.manual_check_out(now=at("17:00")) is False
    assert offline_queue.pending_count == 0


def test_select_and_end_session(attendance_repo, timesheets_repo, warehouses_repo):
    first = attendance_repo.add(date="2024-05-10", check_in_time="08:00")
    second = attendance_repo.add(EXTRA_TABLE, date="2024-05-10", check_in_time="09:00")
    service = make_service(attendance_repo, timesheets_repo, warehouses_repo)
    service.load_active_session(at("10:00"))

    assert service.select(second).id == second
    assert service.current.id == second
    assert service.select("missing") is None

    service.end_session(second)
    assert service.current is None
    assert [s.id for s in service.active_sessions] == [first]


def test_ticker_reports_elapsed_times():
    store = SessionStore()
    ticker = ElapsedTicker(store)
    session = _session("s1", "08:30")
    store.replace_all([session], session)

    ticker.tick(at("10:45"))

    assert ticker.elapsed_time == "02:15:00"
    assert ticker.elapsed_times == {"s1": "02:15:00"}


def test_elapsed_for_future_check_in_is_zero():
    assert elapsed_since("23:00", at("22:00")) == "00:00:00"


def _session(session_id, check_in):
    return Session(
        id=session_id,
        type=SessionType.WAREHOUSE,
        check_in_time=check_in,
        scheduled_end_time="17:00",
        shift_name="Turno Magazzino",
    )
