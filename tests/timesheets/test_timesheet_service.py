from __future__ import annotations

import pytest

from crew_attendance.core.enums import MutationKind, PaymentStatus, SessionType, TrackingType
from crew_attendance.core.exceptions import ConnectivityError, DuplicateCheckInError, LocationError, NotFoundError, ValidationError
from crew_attendance.timesheets.model import CrewEvent, calculate_amounts
from crew_attendance.timesheets.service import TimesheetService

from fakes import CREW_ID, at, location

CONCERT = CrewEvent(id="ev-1", title="Concerto", start_date="2024-05-10", rate=20.0)
TOUR = CrewEvent(id="ev-2", title="Tour", start_date="2024-05-09", end_date="2024-05-12", is_travel=True, rate=180.0)


@pytest.fixture
def service(timesheets_repo, sessions, offline_queue):
    timesheets_repo.add_event(CONCERT)
    timesheets_repo.add_event(TOUR)
    return TimesheetService(timesheets_repo, sessions, offline=offline_queue)


def test_amounts_by_hours_and_days():
    assert calculate_amounts(
        tracking_type=TrackingType.HOURS,
        total_hours=8,
        total_days=None,
        hourly_rate=20,
        daily_rate=None,
        retention_percentage=10,
    ) == (160.0, 144.0)
    assert calculate_amounts(
        tracking_type=TrackingType.DAYS,
        total_hours=0,
        total_days=2,
        hourly_rate=None,
        daily_rate=None,
        retention_percentage=None,
    ) == (400.0, 340.0)


def test_events_today(service):
    days = service.events_today(CREW_ID, now=at("10:00"))

    assert {d.event.id for d in days} == {"ev-1", "ev-2"}
    assert not any(d.to_dict()["checked_in"] for d in days)


def test_event_check_in_opens_draft_and_session(service, timesheets_repo, sessions):
    result = service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:00"))

    row = timesheets_repo.rows[result["entry_id"]]
    assert result["start_time"] == "18:00"
    assert row["status"] == "draft"
    assert row["hourly_rate"] == 20.0
    assert row["tracking_type"] == "hours"
    current = sessions.for_crew(CREW_ID).current
    assert (current.type, current.shift_name) == (SessionType.EVENT, "Concerto")


def test_travel_event_is_tracked_by_day(service, timesheets_repo):
    result = service.check_in(CREW_ID, "ev-2", location=location(), now=at("08:00"))

    row = timesheets_repo.rows[result["entry_id"]]
    assert row["tracking_type"] == "days"
    assert row["daily_rate"] == 180.0
    assert row["hourly_rate"] is None


def test_event_check_in_once_per_day(service):
    service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:00"))

    with pytest.raises(DuplicateCheckInError):
        service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:30"))


def test_unassigned_event(service):
    with pytest.raises(NotFoundError):
        service.check_in(CREW_ID, "ev-9", location=location(), now=at("18:00"))


def test_forced_event_check_in_notes_reason(service, timesheets_repo):
    with pytest.raises(LocationError):
        service.check_in(CREW_ID, "ev-1", now=at("18:00"))

    result = service.check_in(CREW_ID, "ev-1", force=True, notes="Palco B", now=at("18:00"))

    row = timesheets_repo.rows[result["entry_id"]]
    assert result["forced"]
    assert row["notes"].startswith("Palco B\n\n[Check-in forzato: GPS non disponibile")
    assert row["location"]["forced"] is True


def test_event_check_out_past_midnight(service, timesheets_repo, sessions):
    entry_id = service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:00"))["entry_id"]

    result = service.check_out(CREW_ID, entry_id, now=at("01:30", "2024-05-11"))

    row = timesheets_repo.rows[entry_id]
    assert result["end_date"] == "2024-05-11"
    assert row["total_hours"] == 7.5
    assert row["status"] == "submitted"
    assert (row["gross_amount"], row["net_amount"]) == (150.0, 150.0)
    assert sessions.for_crew(CREW_ID).current is None


def test_offline_event_check_out_is_queued(service, timesheets_repo, offline_queue, monkeypatch):
    entry_id = service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:00"))["entry_id"]

    def unreachable(*_args, **_kwargs):
        raise ConnectivityError("Database non raggiungibile")

    monkeypatch.setattr(timesheets_repo, "update", unreachable)
    result = service.check_out(CREW_ID, entry_id, now=at("22:00"))

    [item] = offline_queue.pending
    assert result["queued_offline"]
    assert item.kind == MutationKind.TIMESHEET
    assert item.data["id"] == entry_id
    assert item.data["updates"]["end_time"] == "22:00"


def test_check_out_of_closed_entry(service):
    entry_id = service.check_in(CREW_ID, "ev-1", location=location(), now=at("18:00"))["entry_id"]
    service.check_out(CREW_ID, entry_id, now=at("22:00"))

    with pytest.raises(ValidationError):
        service.check_out(CREW_ID, entry_id, now=at("23:00"))


def test_manual_entry_lifecycle(service, timesheets_repo):
    entry = service.create(
        CREW_ID,
        {"date": "2024-05-08", "start_time": "09:00", "end_time": "18:00", "break_minutes": 60, "hourly_rate": "20"},
    )
    assert entry.total_hours == 8.0
    assert entry.gross_amount == 160.0
    assert entry.net_amount == 160.0

    service.update(CREW_ID, entry.id, {"end_time": "19:00"})
    assert timesheets_repo.rows[entry.id]["total_hours"] == 9.0

    service.submit(CREW_ID, entry.id)
    with pytest.raises(ValidationError):
        service.update(CREW_ID, entry.id, {"end_time": "20:00"})
    with pytest.raises(ValidationError):
        service.delete(CREW_ID, entry.id)


def test_submit_needs_end_time(service):
    entry = service.create(CREW_ID, {"date": "2024-05-08", "start_time": "09:00"})

    with pytest.raises(ValidationError, match="orario di fine"):
        service.submit(CREW_ID, entry.id)


def test_invalid_entry_values(service):
    with pytest.raises(ValidationError):
        service.create(CREW_ID, {"date": "2024-05-08", "start_time": "9"})
    with pytest.raises(ValidationError):
        service.create(CREW_ID, {"date": "2024-05-08", "start_time": "09:00", "break_minutes": -5})


def test_other_crew_entries_are_hidden(service, timesheets_repo):
    entry_id = timesheets_repo.add(crew_id="crew-2", date="2024-05-10", start_time="09:00")

    with pytest.raises(NotFoundError):
        service.delete(CREW_ID, entry_id)


def test_payment_status_only_moves_forward(service, timesheets_repo):
    entry_id = timesheets_repo.add(date="2024-05-10", start_time="09:00", end_time="17:00", status="submitted")

    with pytest.raises(ValidationError, match="non modificabile"):
        service.update_payment_status(CREW_ID, entry_id, "paid_by_company")
    with pytest.raises(ValidationError, match="non valido"):
        service.update_payment_status(CREW_ID, entry_id, "boh")

    assert service.update_payment_status(CREW_ID, entry_id, "received_by_crew") == PaymentStatus.RECEIVED_BY_CREW
    assert service.update_payment_status(CREW_ID, entry_id, "confirmed") == PaymentStatus.CONFIRMED
    with pytest.raises(ValidationError, match="avanzare"):
        service.update_payment_status(CREW_ID, entry_id, "received_by_crew")


def test_rectify_existing_entry_keeps_originals(service, timesheets_repo):
    entry_id = timesheets_repo.add(event_id="ev-1", date="2024-05-10", start_time="18:00", end_time="22:00")

    service.rectify(
        CREW_ID,
        event_id="ev-1",
        entry_id=entry_id,
        start_time="17:30",
        end_time="23:00",
        break_minutes=30,
        note="Montaggio iniziato prima",
        now=at("23:30"),
    )

    row = timesheets_repo.rows[entry_id]
    assert (row["original_start_time"], row["original_end_time"]) == ("18:00", "22:00")
    assert (row["start_time"], row["end_time"]) == ("17:30", "23:00")
    assert row["total_hours"] == 5.0
    assert row["is_rectified"] is True


def test_rectify_without_entry_creates_one(service, timesheets_repo):
    entry_id = service.rectify(
        CREW_ID,
        event_id="ev-1",
        start_time="18:00",
        end_time="23:00",
        note="Check-in dimenticato",
    )

    row = timesheets_repo.rows[entry_id]
    assert row["date"] == "2024-05-10"
    assert row["status"] == "submitted"
    assert row["total_hours"] == 5.0


def test_rectify_validations(service):
    with pytest.raises(ValidationError, match="minimo 10 caratteri"):
        service.rectify(CREW_ID, event_id="ev-1", start_time="18:00", end_time="23:00", note="corto")
    with pytest.raises(ValidationError, match="successivo"):
        service.rectify(CREW_ID, event_id="ev-1", start_time="18:00", end_time="18:30", break_minutes=30, note="Nota abbastanza lunga")
