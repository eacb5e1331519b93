from __future__ import annotations

import openpyxl
import pytest

from crew_attendance.attendance.service import AttendanceService
from crew_attendance.core.exceptions import NotFoundError, ValidationError
from crew_attendance.reports.service import MonthlyReportService

from fakes import CREW_ID, InMemoryOvertime, InMemoryShifts, at, location, make_shift


@pytest.fixture
def overtime_repo():
    return InMemoryOvertime()


@pytest.fixture
def service(attendance_repo, timesheets_repo, overtime_repo, sessions):
    return MonthlyReportService(attendance_repo, timesheets_repo, overtime_repo, sessions)


@pytest.fixture
def may(attendance_repo, timesheets_repo, overtime_repo):
    plain = attendance_repo.add(
        date="2024-05-10",
        check_in_time="09:00",
        check_out_time="17:00",
        status="completed",
        net_hours=7.0,
        warehouse_name="Magazzino Nord",
        company_meal=True,
        meal_cost=8.0,
    )
    rectified = attendance_repo.add(
        date="2024-05-11",
        check_in_time="08:00",
        check_out_time="16:00",
        status="completed",
        net_hours=7.0,
        rectified_check_in_time="07:30",
        rectified_total_hours=7.5,
        rectification_note="Arrivato prima per lo scarico",
        rectified_at="2024-05-12T10:00:00",
    )
    attendance_repo.add(date="2024-06-01", check_in_time="09:00", check_out_time="17:00", status="completed", net_hours=8.0)
    timesheets_repo.add(event_id="ev-1", date="2024-05-12", start_time="18:00", end_time="23:00", total_hours=5.0, status="submitted")
    overtime_repo.insert(
        {
            "crew_id": CREW_ID,
            "attendance_id": plain,
            "minutes": 60,
            "hourly_rate": 15.0,
            "total_amount": 15.0,
            "note": "Inventario serale",
        }
    )
    return plain, rectified


def test_monthly_totals(service, may):
    report = service.build_monthly_report(CREW_ID, year=2024, month=5)

    assert report.totals["shifts"] == 2
    assert report.totals["days_worked"] == 2
    assert report.totals["total_minutes"] == 870
    assert report.totals["total_hours"] == "14:30"
    assert report.totals["event_days"] == 1
    assert report.totals["event_hours"] == "5:00"
    assert (report.totals["company_meals"], report.totals["meal_cost"]) == (1, 8.0)
    assert report.totals["overtime_minutes"] == 60
    assert report.totals["rectified"] == 1


def test_rectified_values_replace_originals(service, may):
    _, rectified = may

    report = service.build_monthly_report(CREW_ID, year=2024, month=5)

    row = next(r for r in report.rows if r["id"] == rectified)
    assert (row["check_in"], row["original_check_in"]) == ("07:30", "08:00")
    assert row["check_out"] == "16:00"
    assert row["worked"] == "7:30"


def test_invalid_month(service):
    with pytest.raises(ValidationError):
        service.build_monthly_report(CREW_ID, year=2024, month=13)


def test_excel_export_has_three_sheets(service, may):
    report = service.build_monthly_report(CREW_ID, year=2024, month=5)

    workbook = openpyxl.load_workbook(service.export_excel(report))

    assert workbook.sheetnames == ["Turni", "Eventi", "Totali"]
    assert workbook["Turni"].max_row == 3
    assert workbook["Turni"]["B1"].value == "Magazzino"


def test_rectify_open_record_closes_it(service, attendance_repo, sessions):
    record_id = attendance_repo.add(date="2024-05-10", check_in_time="09:00", break_minutes=60)
    crew_sessions = sessions.for_crew(CREW_ID)
    crew_sessions.load_active_session(at("10:00"))

    hours = service.rectify_shift(
        CREW_ID,
        record_id,
        check_in="09:00",
        check_out="17:30",
        lunch_start="13:00",
        lunch_end="13:30",
        note="Check-out dimenticato",
        now=at("20:00"),
    )

    row = attendance_repo.row(record_id)
    assert hours == 8.0
    assert row["check_out_time"] == "17:30"
    assert row["status"] == "completed"
    assert row["rectified_total_hours"] == 8.0
    assert crew_sessions.current is None


def test_rectify_completed_record_keeps_original_checkout(service, attendance_repo):
    record_id = attendance_repo.add(date="2024-05-10", check_in_time="09:00", check_out_time="17:00", status="completed")

    service.rectify_shift(CREW_ID, record_id, check_in="08:30", check_out="17:00", note="Entrata anticipata")

    row = attendance_repo.row(record_id)
    assert row["check_out_time"] == "17:00"
    assert row["rectified_check_in_time"] == "08:30"


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"check_in": "", "check_out": "17:00", "note": "Nota sufficiente"}, "orari validi"),
        ({"check_in": "09:00", "check_out": "17:00", "note": "breve"}, "minimo 10 caratteri"),
        ({"check_in": "09:00", "check_out": "17:00", "note": "Nota sufficiente", "lunch_start": "13:00"}, "sia l'inizio che la fine"),
        ({"check_in": "09:00", "check_out": "17:00", "note": "Nota sufficiente", "lunch_start": "14:00", "lunch_end": "13:00"}, "dopo l'inizio"),
        (
            {"check_in": "09:00", "check_out": "10:00", "note": "Nota sufficiente", "lunch_start": "09:00", "lunch_end": "10:00"},
            "maggiori di zero",
        ),
    ],
)
def test_rectify_validations(service, attendance_repo, kwargs, match):
    record_id = attendance_repo.add(date="2024-05-10", check_in_time="09:00", check_out_time="17:00", status="completed")

    with pytest.raises(ValidationError, match=match):
        service.rectify_shift(CREW_ID, record_id, **kwargs)


def test_rectify_someone_elses_record(service, attendance_repo):
    record_id = attendance_repo.add(crew_id="crew-2", date="2024-05-10", check_in_time="09:00")

    with pytest.raises(NotFoundError):
        service.rectify_shift(CREW_ID, record_id, check_in="09:00", check_out="17:00", note="Nota sufficiente")


def test_report_row_names_the_warehouse_of_a_live_check_in(service, attendance_repo, warehouses_repo, crew_service, sessions):
    attendance = AttendanceService(
        attendance_repo, InMemoryShifts({"shift-1": make_shift()}), warehouses_repo, crew_service, sessions
    )
    attendance.check_in(CREW_ID, shift_id="shift-1", code="NORD01", location=location(), now=at("08:55"))
    attendance.check_out(CREW_ID, location=location(), now=at("17:00"))

    [row] = service.build_monthly_report(CREW_ID, year=2024, month=5).rows

    assert row["warehouse_name"] == "Magazzino Nord"
