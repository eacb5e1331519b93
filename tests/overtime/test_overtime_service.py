from __future__ import annotations

from dataclasses import replace

import pytest

from crew_attendance.core.enums import OvertimeStatus
from crew_attendance.core.exceptions import NotFoundError, ValidationError
from crew_attendance.overtime.service import OvertimeService

from fakes import CREW_ID, InMemoryOvertime

NOTE = "Scarico camion in ritardo"


@pytest.fixture
def overtime_repo():
    return InMemoryOvertime()


@pytest.fixture
def service(overtime_repo, attendance_repo, timesheets_repo, crew_service):
    return OvertimeService(overtime_repo, attendance_repo, timesheets_repo, crew_service)


@pytest.fixture
def long_shift(attendance_repo):
    # 9h15 worked: 75 minutes over, 60 requestable.
    return attendance_repo.add(
        date="2024-05-10",
        check_in_time="08:00",
        check_out_time="18:15",
        status="completed",
        net_hours=9.25,
    )


def test_candidates_floor_to_half_hours(service, attendance_repo, timesheets_repo, long_shift):
    attendance_repo.add(date="2024-05-09", check_in_time="08:00", check_out_time="17:12", status="completed", net_hours=8.2)
    entry_id = timesheets_repo.add(
        event_id="ev-1",
        date="2024-05-08",
        start_time="12:00",
        end_time="22:00",
        tracking_type="hours",
        total_hours=10.0,
        status="submitted",
    )
    timesheets_repo.add(date="2024-05-07", start_time="08:00", total_hours=12.0)

    candidates = service.candidates(CREW_ID)

    assert [(c.reference_id, c.requestable_minutes) for c in candidates] == [(entry_id, 120), (long_shift, 60)]
    assert candidates[1].to_dict()["requestable_formatted"] == "1h"


def test_request_on_warehouse_shift(service, attendance_repo, long_shift):
    saved = service.request(CREW_ID, minutes="60", note=NOTE, attendance_id=long_shift)

    assert saved.status == OvertimeStatus.PENDING
    assert (saved.minutes, saved.hourly_rate, saved.total_amount) == (60, 15.0, 15.0)
    assert attendance_repo.row(long_shift)["overtime_requested"] is True


def test_request_on_event_entry(service, timesheets_repo):
    entry_id = timesheets_repo.add(
        event_id="ev-1",
        date="2024-05-08",
        start_time="12:00",
        end_time="21:30",
        total_hours=9.5,
        status="submitted",
    )

    saved = service.request(CREW_ID, minutes=90, note=NOTE, timesheet_entry_id=entry_id)

    assert saved.timesheet_entry_id == entry_id
    assert saved.event_id == "ev-1"
    assert saved.total_amount == 22.5


@pytest.mark.parametrize(
    "minutes, match",
    [
        ("abc", "Minuti non validi"),
        (0, "almeno 30 minuti"),
        (45, "tagli di 30 minuti"),
        (90, "al massimo 1h"),
    ],
)
def test_request_minutes_checks(service, long_shift, minutes, match):
    with pytest.raises(ValidationError, match=match):
        service.request(CREW_ID, minutes=minutes, note=NOTE, attendance_id=long_shift)


def test_request_needs_a_real_note(service, long_shift):
    with pytest.raises(ValidationError, match="minimo 10 caratteri"):
        service.request(CREW_ID, minutes=30, note="  ritardo ", attendance_id=long_shift)


def test_request_needs_authorisation(service, crew_repo, long_shift):
    crew_repo.members[CREW_ID] = replace(crew_repo.members[CREW_ID], overtime_benefit=False)

    assert service.is_authorized(CREW_ID) is False
    with pytest.raises(ValidationError, match="autorizzato"):
        service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=long_shift)


def test_request_needs_a_reference(service):
    with pytest.raises(ValidationError, match="Seleziona"):
        service.request(CREW_ID, minutes=30, note=NOTE)


def test_only_one_request_per_shift(service, long_shift):
    service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=long_shift)

    with pytest.raises(ValidationError, match="già richiesto"):
        service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=long_shift)
    assert len(service.history(CREW_ID)) == 1


def test_open_shift_cannot_be_claimed(service, attendance_repo):
    record_id = attendance_repo.add(date="2024-05-10", check_in_time="08:00")

    with pytest.raises(ValidationError, match="turni completati"):
        service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=record_id)


def test_someone_elses_shift_is_not_found(service, attendance_repo):
    record_id = attendance_repo.add(crew_id="crew-2", date="2024-05-10", status="completed", net_hours=10.0)

    with pytest.raises(NotFoundError):
        service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=record_id)


def test_short_shift_has_nothing_to_request(service, attendance_repo):
    record_id = attendance_repo.add(date="2024-05-10", status="completed", net_hours=8.4)

    with pytest.raises(ValidationError, match="Nessuno straordinario"):
        service.request(CREW_ID, minutes=30, note=NOTE, attendance_id=record_id)
