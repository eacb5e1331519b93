from __future__ import annotations

import logging
from typing import List, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.time_format import format_minutes_compact, requestable_overtime_minutes
from ..common.validators import require_min_length
from ..core.constants import EXPECTED_SHIFT_MINUTES, OVERTIME_NOTE_MIN_LENGTH, OVERTIME_STEP_MINUTES
from ..core.enums import CheckInStatus, OvertimeStatus, TimesheetStatus, TrackingType
from ..core.exceptions import NotFoundError, ValidationError
from ..crew.service import CrewService
from ..timesheets.model import TimesheetEntry
from ..timesheets.repository import TimesheetRepository
from .model import OvertimeCandidate, OvertimeRequest
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)


class OvertimeService:
    def __init__(
        self,
        overtime: OvertimeRepository,
        attendance: AttendanceRepository,
        timesheets: TimesheetRepository,
        crew: CrewService,
        *,
        expected_minutes: int = EXPECTED_SHIFT_MINUTES,
    ):
        self._overtime = overtime
        self._attendance = attendance
        self._timesheets = timesheets
        self._crew = crew
        self._expected = int(expected_minutes)

    def is_authorized(self, crew_id: str) -> bool:
        return self._crew.overtime_rate_for(crew_id) is not None

    def history(self, crew_id: str) -> List[OvertimeRequest]:
        return list(self._overtime.list_for_crew(crew_id))

    def _from_record(self, record: AttendanceRecord) -> Optional[OvertimeCandidate]:
        worked = round(record.effective().total_hours * 60)
        excess = worked - self._expected
        if excess <= 0:
            return None
        return OvertimeCandidate(
            source="warehouse",
            reference_id=record.id,
            date=record.date,
            title=record.warehouse_name or "Turno Magazzino",
            worked_minutes=worked,
            excess_minutes=excess,
            requestable_minutes=requestable_overtime_minutes(excess),
            already_requested=record.overtime_requested,
        )

    def _from_entry(self, entry: TimesheetEntry) -> Optional[OvertimeCandidate]:
        if entry.tracking_type != TrackingType.HOURS or not entry.end_time:
            return None
        worked = round(entry.total_hours * 60)
        excess = worked - self._expected
        if excess <= 0:
            return None
        return OvertimeCandidate(
            source="event",
            reference_id=entry.id,
            event_id=entry.event_id,
            date=entry.date,
            title=entry.event_title or "Evento",
            worked_minutes=worked,
            excess_minutes=excess,
            requestable_minutes=requestable_overtime_minutes(excess),
        )

    def candidates(self, crew_id: str) -> List[OvertimeCandidate]:
        """Shifts with at least one requestable step, most requestable first."""
        out: List[OvertimeCandidate] = []
        for record in self._attendance.list_completed(crew_id):
            c = self._from_record(record)
            if c and c.requestable_minutes > 0:
                out.append(c)
        for entry in self._timesheets.list_for_crew(crew_id):
            if entry.status == TimesheetStatus.DRAFT:
                continue
            c = self._from_entry(entry)
            if c and c.requestable_minutes > 0:
                out.append(c)
        out.sort(key=lambda c: c.date, reverse=True)
        out.sort(key=lambda c: c.requestable_minutes, reverse=True)
        return out

    def _candidate(self, crew_id: str, *, attendance_id: Optional[str], timesheet_entry_id: Optional[str]) -> OvertimeCandidate:
        if attendance_id:
            record = self._attendance.get(attendance_id)
            if record is None or record.crew_id != crew_id:
                raise NotFoundError("Turno non trovato")
            if record.status != CheckInStatus.COMPLETED.value:
                raise ValidationError("Lo straordinario si richiede solo per turni completati")
            if self._overtime.find_for_attendance(record.id):
                raise ValidationError("Straordinario già richiesto per questo turno")
            candidate = self._from_record(record)
        elif timesheet_entry_id:
            entry = self._timesheets.get(timesheet_entry_id)
            if entry is None or entry.crew_id != crew_id:
                raise NotFoundError("Evento non trovato")
            if self._overtime.find_for_timesheet_entry(entry.id):
                raise ValidationError("Straordinario già richiesto per questo evento")
            candidate = self._from_entry(entry)
        else:
            raise ValidationError("Seleziona il turno per cui richiedere lo straordinario")

        if candidate is None or candidate.requestable_minutes <= 0:
            raise ValidationError("Nessuno straordinario richiedibile per questo turno")
        return candidate

    def request(
        self,
        crew_id: str,
        *,
        minutes: int,
        note: str,
        attendance_id: Optional[str] = None,
        timesheet_entry_id: Optional[str] = None,
    ) -> OvertimeRequest:
        try:
            minutes = int(minutes)
        except (TypeError, ValueError):
            raise ValidationError("Minuti non validi")
        if minutes <= 0:
            raise ValidationError("Inserisci almeno 30 minuti di straordinario")
        if minutes % OVERTIME_STEP_MINUTES != 0:
            raise ValidationError("Le ore straordinarie devono essere richieste con tagli di 30 minuti")

        rate = self._crew.overtime_rate_for(crew_id)
        if rate is None:
            raise ValidationError("Non sei autorizzato agli straordinari")
        note = require_min_length(note, "Motivazione", OVERTIME_NOTE_MIN_LENGTH)

        candidate = self._candidate(crew_id, attendance_id=attendance_id, timesheet_entry_id=timesheet_entry_id)
        if minutes > candidate.requestable_minutes:
            raise ValidationError(
                f"Puoi richiedere al massimo {format_minutes_compact(candidate.requestable_minutes)} per questo turno"
            )

        saved = self._overtime.insert(
            {
                "crew_id": crew_id,
                "attendance_id": attendance_id,
                "timesheet_entry_id": timesheet_entry_id,
                "event_id": candidate.event_id,
                "minutes": minutes,
                "hourly_rate": rate,
                "total_amount": round(minutes / 60 * rate, 2),
                "note": note,
                "status": OvertimeStatus.PENDING.value,
            }
        )
        if attendance_id:
            self._attendance.update(attendance_id, {"overtime_requested": True})
        logger.info("Overtime request %s: %d min for crew %s", saved.id, minutes, crew_id)
        return saved
