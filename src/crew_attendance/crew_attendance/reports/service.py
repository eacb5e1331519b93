"""Monthly report of worked time and shift rectification.

Every figure is computed from the effective values of a record: a rectified
time replaces the original one wherever it exists.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pandas as pd

from ..attendance.model import EXTRA_TABLE, WAREHOUSE_TABLE, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import first_day_of_month, last_day_of_month, now_local
from ..common.time_format import break_minutes, format_minutes_as_short_time, span_minutes
from ..common.validators import optional_time, require_min_length, require_time
from ..core.constants import RECTIFICATION_NOTE_MIN_LENGTH
from ..core.enums import CheckInStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..overtime.repository import OvertimeRepository
from ..sessions.registry import SessionRegistry
from ..timesheets.repository import TimesheetRepository

logger = logging.getLogger(__name__)

EXCEL_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    events: list[dict]
    totals: dict


def _break_pair(start: Optional[str], end: Optional[str], label: str) -> tuple[Optional[str], Optional[str]]:
    start = optional_time(start, f"Inizio {label}")
    end = optional_time(end, f"Fine {label}")
    if bool(start) != bool(end):
        raise ValidationError(f"Specifica sia l'inizio che la fine della {label}")
    if start and end and end <= start:
        raise ValidationError(f"La fine della {label} deve essere dopo l'inizio")
    return start, end


class MonthlyReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        timesheets: TimesheetRepository,
        overtime: OvertimeRepository,
        sessions: Optional[SessionRegistry] = None,
    ):
        self._attendance = attendance
        self._timesheets = timesheets
        self._overtime = overtime
        self._sessions = sessions

    def _row(self, r: AttendanceRecord, overtime: dict) -> dict:
        eff = r.effective()
        request = overtime.get(r.id)
        return {
            "id": r.id,
            "date": r.date,
            "warehouse_name": r.warehouse_name or "-",
            "check_in": eff.check_in_time or "-",
            "check_out": eff.check_out_time or "-",
            "lunch_break": f"{eff.lunch_break_start} - {eff.lunch_break_end}" if eff.lunch_break_start and eff.lunch_break_end else "-",
            "dinner_break": f"{eff.dinner_break_start} - {eff.dinner_break_end}" if eff.dinner_break_start and eff.dinner_break_end else "-",
            "total_hours": eff.total_hours,
            "worked": format_minutes_as_short_time(round(eff.total_hours * 60)),
            "status": r.status,
            "is_rectified": eff.is_rectified,
            "rectification_note": r.rectification_note,
            "original_check_in": r.check_in_time if eff.is_rectified else None,
            "original_check_out": r.check_out_time if eff.is_rectified else None,
            "company_meal": r.company_meal,
            "meal_voucher": r.meal_voucher,
            "meal_cost": r.meal_cost,
            "auto_checkout": r.auto_checkout,
            "forced_checkin": r.forced_checkin,
            "overtime_minutes": request.minutes if request else 0,
            "overtime_status": request.status.value if request else None,
        }

    def build_monthly_report(self, crew_id: str, *, year: int, month: int) -> ReportData:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Mese non valido")
        start = first_day_of_month(int(year), int(month))
        end = last_day_of_month(int(year), int(month))

        overtime = {o.attendance_id: o for o in self._overtime.list_for_crew(crew_id) if o.attendance_id}
        rows = [self._row(r, overtime) for r in self._attendance.list_between(crew_id=crew_id, start_date=start, end_date=end)]
        entries = self._timesheets.list_for_crew(crew_id, start_date=start, end_date=end)
        events = [
            {
                "id": e.id,
                "date": e.date,
                "title": e.event_title or "Evento",
                "start_time": e.rectified_start_time or e.start_time,
                "end_time": e.rectified_end_time or e.end_time,
                "total_hours": e.total_hours,
                "status": e.status.value,
                "is_rectified": e.is_rectified,
                "net_amount": e.net_amount,
            }
            for e in entries
        ]

        minutes = sum(round(r["total_hours"] * 60) for r in rows)
        event_minutes = sum(round(e["total_hours"] * 60) for e in events)
        totals = {
            "days_worked": len({r["date"] for r in rows if r["total_hours"] > 0}),
            "shifts": len(rows),
            "total_minutes": minutes,
            "total_hours": format_minutes_as_short_time(minutes),
            "event_days": len(events),
            "event_hours": format_minutes_as_short_time(event_minutes),
            "company_meals": sum(1 for r in rows if r["company_meal"]),
            "meal_vouchers": sum(1 for r in rows if r["meal_voucher"]),
            "meal_cost": round(sum(r["meal_cost"] for r in rows), 2),
            "overtime_minutes": sum(r["overtime_minutes"] for r in rows),
            "rectified": sum(1 for r in rows if r["is_rectified"]),
        }
        return ReportData(rows=rows, events=events, totals=totals)

    def export_excel(self, report: ReportData) -> io.BytesIO:
        shifts = pd.DataFrame(
            [
                {
                    "Data": r["date"],
                    "Magazzino": r["warehouse_name"],
                    "Entrata": r["check_in"],
                    "Uscita": r["check_out"],
                    "Pausa pranzo": r["lunch_break"],
                    "Pausa cena": r["dinner_break"],
                    "Ore": r["worked"],
                    "Rettificato": "Sì" if r["is_rectified"] else "",
                    "Straordinario (min)": r["overtime_minutes"],
                }
                for r in report.rows
            ]
        )
        events = pd.DataFrame(
            [
                {
                    "Data": e["date"],
                    "Evento": e["title"],
                    "Inizio": e["start_time"] or "-",
                    "Fine": e["end_time"] or "-",
                    "Ore": e["total_hours"],
                    "Stato": e["status"],
                }
                for e in report.events
            ]
        )

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            shifts.to_excel(writer, index=False, sheet_name="Turni")
            events.to_excel(writer, index=False, sheet_name="Eventi")
            pd.DataFrame([report.totals]).to_excel(writer, index=False, sheet_name="Totali")
        output.seek(0)
        return output

    def rectify_shift(
        self,
        crew_id: str,
        record_id: str,
        *,
        check_in: str,
        check_out: str,
        note: str,
        lunch_start: Optional[str] = None,
        lunch_end: Optional[str] = None,
        dinner_start: Optional[str] = None,
        dinner_end: Optional[str] = None,
        extra: bool = False,
        now: Optional[datetime] = None,
    ) -> float:
        """Overlay corrected times on a record. Returns the new net hours."""
        if not check_in or not check_out:
            raise ValidationError("Inserisci orari validi")
        check_in = require_time(check_in, "Entrata")
        check_out = require_time(check_out, "Uscita")
        note = require_min_length(note, "La nota di rettifica", RECTIFICATION_NOTE_MIN_LENGTH)
        lunch = _break_pair(lunch_start, lunch_end, "pausa pranzo")
        dinner = _break_pair(dinner_start, dinner_end, "pausa cena")

        net = span_minutes(check_in, check_out) - break_minutes([lunch, dinner])
        if net <= 0:
            raise ValidationError(
                "Le pause non possono coprire tutto il tempo di lavoro. Le ore effettive devono essere maggiori di zero."
            )
        hours = round(net / 60, 2)

        table = EXTRA_TABLE if extra else WAREHOUSE_TABLE
        record = self._attendance.get(record_id, table=table)
        if record is None or record.crew_id != crew_id:
            raise NotFoundError("Turno non trovato")

        values = {
            "rectified_check_in_time": check_in,
            "rectified_check_out_time": check_out,
            "rectified_lunch_start": lunch[0],
            "rectified_lunch_end": lunch[1],
            "rectified_dinner_start": dinner[0],
            "rectified_dinner_end": dinner[1],
            "rectified_total_hours": hours,
            "rectification_note": note,
            "rectified_by": crew_id,
            "rectified_at": (now or now_local()).isoformat(),
            "total_hours": hours,
            "status": CheckInStatus.COMPLETED.value,
        }
        was_open = not record.check_out_time or record.status != CheckInStatus.COMPLETED.value
        if was_open:
            values["check_out_time"] = check_out
        self._attendance.update(record.id, values, table=table)

        if was_open and self._sessions is not None:
            self._sessions.for_crew(crew_id).end_session(record.id)
        logger.info("Record %s rectified by %s (%.2f h)", record.id, crew_id, hours)
        return hours
