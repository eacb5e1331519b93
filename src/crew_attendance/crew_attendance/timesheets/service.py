from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import add_days, current_hhmm, now_local, parse_iso_date, to_local_date_string, today_string
from ..common.time_format import span_minutes
from ..common.validators import optional_time, require_min_length, require_non_empty, require_time
from ..core.constants import DEFAULT_SHIFT_END, RECTIFICATION_NOTE_MIN_LENGTH
from ..core.enums import MutationKind, PaymentStatus, SessionType, TimesheetStatus, TrackingType
from ..core.exceptions import ConnectivityError, DuplicateCheckInError, LocationError, NotFoundError, ValidationError
from ..location.model import Location
from ..offline.queue import OfflineQueue
from ..sessions.model import Session
from ..sessions.registry import SessionRegistry
from .model import CrewEvent, TimesheetEntry, calculate_amounts
from .repository import TimesheetRepository

logger = logging.getLogger(__name__)

PAYMENT_FLOW = (
    PaymentStatus.PENDING,
    PaymentStatus.PAID_BY_COMPANY,
    PaymentStatus.RECEIVED_BY_CREW,
    PaymentStatus.CONFIRMED,
)
CREW_PAYMENT_STATUSES = (PaymentStatus.RECEIVED_BY_CREW, PaymentStatus.CONFIRMED)


@dataclass(frozen=True)
class EventDay:
    event: CrewEvent
    entry: Optional[TimesheetEntry] = None

    def to_dict(self) -> dict:
        e = self.event
        return {
            "event_id": e.id,
            "title": e.title,
            "start_date": e.start_date,
            "end_date": e.end_date,
            "location": e.location,
            "is_travel": e.is_travel,
            "checked_in": self.entry is not None,
            "checked_out": self.entry is not None and self.entry.end_time is not None,
            "entry_id": self.entry.id if self.entry else None,
            "start_time": self.entry.start_time if self.entry else None,
            "end_time": self.entry.end_time if self.entry else None,
        }


def entry_to_dict(entry: TimesheetEntry) -> dict:
    return {
        "id": entry.id,
        "event_id": entry.event_id,
        "event_title": entry.event_title,
        "date": entry.date,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "end_date": entry.end_date,
        "break_minutes": entry.break_minutes,
        "tracking_type": entry.tracking_type.value,
        "hourly_rate": entry.hourly_rate,
        "daily_rate": entry.daily_rate,
        "total_days": entry.total_days,
        "retention_percentage": entry.retention_percentage,
        "total_hours": entry.total_hours,
        "gross_amount": entry.gross_amount,
        "net_amount": entry.net_amount,
        "payment_status": entry.payment_status.value,
        "status": entry.status.value,
        "company_meal": entry.company_meal,
        "meal_voucher": entry.meal_voucher,
        "notes": entry.notes,
        "is_rectified": entry.is_rectified,
        "rectified_start_time": entry.rectified_start_time,
        "rectified_end_time": entry.rectified_end_time,
        "rectification_notes": entry.rectification_notes,
    }


def net_hours(start: str, end: str, break_minutes: int) -> float:
    return round((span_minutes(start, end) - int(break_minutes or 0)) / 60, 2)


class TimesheetService:
    """Event check-in/out and the crew member's own timesheet entries."""

    def __init__(self, timesheets: TimesheetRepository, sessions: SessionRegistry, *, offline: Optional[OfflineQueue] = None):
        self._timesheets = timesheets
        self._sessions = sessions
        self._offline = offline

    def _owned(self, crew_id: str, entry_id: str) -> TimesheetEntry:
        entry = self._timesheets.get(entry_id)
        if entry is None or entry.crew_id != crew_id:
            raise NotFoundError("Voce timesheet non trovata")
        return entry

    # -- event check-in/out -----------------------------------------------

    def events_today(self, crew_id: str, now: Optional[datetime] = None) -> List[EventDay]:
        work_date = today_string(now)
        entries = {e.event_id: e for e in self._timesheets.list_for_crew(crew_id, start_date=work_date, end_date=work_date)}
        return [EventDay(ev, entries.get(ev.id)) for ev in self._timesheets.list_events_for_crew_on(crew_id, work_date)]

    def check_in(
        self,
        crew_id: str,
        event_id: str,
        *,
        location: Optional[Location] = None,
        force: bool = False,
        gps_error: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or now_local()
        event = self._timesheets.get_event_for_crew(crew_id, event_id)
        if event is None:
            raise NotFoundError("Evento non assegnato")

        work_date = today_string(now)
        for entry in self._timesheets.list_for_crew(crew_id, start_date=work_date, end_date=work_date):
            if entry.event_id == event_id:
                raise DuplicateCheckInError("Check-in già effettuato per questo evento oggi")

        forced, reason = False, None
        if location is None:
            if not force:
                raise LocationError("Posizione GPS non disponibile. Puoi forzare il check-in senza GPS.")
            forced = True
            reason = (gps_error or "").strip() or "GPS non disponibile - Check-in forzato dall'utente"

        final_notes = (notes or "").strip() or None
        if forced:
            final_notes = f"{final_notes}\n\n[Check-in forzato: {reason}]" if final_notes else f"[Check-in forzato: {reason}]"

        tracking = TrackingType.DAYS if event.is_travel else TrackingType.HOURS
        start_time = current_hhmm(now)
        row = {
            "crew_id": crew_id,
            "event_id": event.id,
            "date": work_date,
            "start_time": start_time,
            "tracking_type": tracking.value,
            "hourly_rate": event.rate if tracking == TrackingType.HOURS else None,
            "daily_rate": event.rate if tracking == TrackingType.DAYS else None,
            "retention_percentage": 0,
            "gross_amount": 0,
            "net_amount": 0,
            "location": location.to_dict(forced=False) if location else {"forced": True, "error_reason": reason},
            "meal_voucher": False,
            "status": TimesheetStatus.DRAFT.value,
            "payment_status": PaymentStatus.PENDING.value,
            "notes": final_notes,
        }

        try:
            entry = self._timesheets.insert(row)
        except ConnectivityError:
            if self._offline is None:
                raise
            queued = self._offline.enqueue(MutationKind.TIMESHEET, row)
            logger.warning("Event check-in for %s saved offline (%s)", event.id, queued.id)
            return {"entry_id": None, "start_time": start_time, "queued_offline": True, "forced": forced}

        self._sessions.for_crew(crew_id).start_session(
            Session(
                id=entry.id,
                type=SessionType.EVENT,
                event_id=event.id,
                check_in_time=start_time,
                scheduled_end_time=DEFAULT_SHIFT_END,
                shift_name=event.title,
            )
        )
        return {"entry_id": entry.id, "start_time": start_time, "queued_offline": False, "forced": forced}

    def check_out(self, crew_id: str, entry_id: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Set the real end time; an end before the start moves the end date to the next day."""
        entry = self._owned(crew_id, entry_id)
        if not entry.is_open or not entry.start_time:
            raise ValidationError("Nessun check-in aperto per questo evento")

        end_time = current_hhmm(now or now_local())
        end_date = entry.date
        if end_time < entry.start_time:
            end_date = to_local_date_string(add_days(parse_iso_date(entry.date), 1))

        total_hours = max(net_hours(entry.start_time, end_time, entry.break_minutes), 0.0)
        total_days = 1.0 if entry.tracking_type == TrackingType.DAYS else entry.total_days
        gross, net = calculate_amounts(
            tracking_type=entry.tracking_type,
            total_hours=total_hours,
            total_days=total_days,
            hourly_rate=entry.hourly_rate,
            daily_rate=entry.daily_rate,
            retention_percentage=entry.retention_percentage,
        )
        updates = {
            "end_time": end_time,
            "end_date": end_date,
            "total_hours": total_hours,
            "total_days": total_days,
            "gross_amount": gross,
            "net_amount": net,
            "status": TimesheetStatus.SUBMITTED.value,
        }

        queued = False
        try:
            self._timesheets.update(entry.id, updates)
        except ConnectivityError:
            if self._offline is None:
                raise
            self._offline.enqueue(MutationKind.TIMESHEET, {"id": entry.id, "updates": updates})
            queued = True

        self._sessions.for_crew(crew_id).end_session(entry.id)
        return {"entry_id": entry.id, "end_time": end_time, "end_date": end_date, "total_hours": total_hours, "queued_offline": queued}

    # -- manual entries ---------------------------------------------------

    def list_entries(self, crew_id: str, *, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[TimesheetEntry]:
        return list(self._timesheets.list_for_crew(crew_id, start_date=start_date, end_date=end_date))

    def _entry_values(self, data: Dict[str, Any], *, base: Optional[TimesheetEntry] = None) -> Dict[str, Any]:
        def pick(key, default=None):
            if key in data:
                return data[key]
            return getattr(base, key, default) if base is not None else default

        work_date = require_non_empty(str(pick("date") or ""), "Data")
        parse_iso_date(work_date)
        start = require_time(pick("start_time"), "Orario inizio")
        end = optional_time(pick("end_time"), "Orario fine")
        try:
            breaks = int(pick("break_minutes", 0) or 0)
        except (TypeError, ValueError):
            raise ValidationError("Pausa non valida")
        if breaks < 0:
            raise ValidationError("Pausa non valida")

        try:
            tracking = TrackingType(pick("tracking_type", TrackingType.HOURS) or TrackingType.HOURS)
        except ValueError:
            raise ValidationError("Tipo di registrazione non valido")

        def money(key) -> Optional[float]:
            value = pick(key)
            if value in (None, ""):
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Valore non valido: {key}")

        total_hours = max(net_hours(start, end, breaks), 0.0) if end else 0.0
        total_days = money("total_days")
        retention = money("retention_percentage") or 0.0
        gross, net = calculate_amounts(
            tracking_type=tracking,
            total_hours=total_hours,
            total_days=total_days,
            hourly_rate=money("hourly_rate"),
            daily_rate=money("daily_rate"),
            retention_percentage=retention,
        )
        return {
            "event_id": pick("event_id"),
            "date": work_date[:10],
            "start_time": start,
            "end_time": end,
            "break_minutes": breaks,
            "tracking_type": tracking.value,
            "hourly_rate": money("hourly_rate"),
            "daily_rate": money("daily_rate"),
            "total_days": total_days,
            "retention_percentage": retention,
            "total_hours": total_hours,
            "gross_amount": gross,
            "net_amount": net,
            "notes": (pick("notes") or "").strip() or None,
            "company_meal": bool(pick("company_meal", False)),
            "meal_voucher": bool(pick("meal_voucher", False)),
        }

    def create(self, crew_id: str, data: Dict[str, Any], *, location: Optional[Location] = None) -> TimesheetEntry:
        row = self._entry_values(data)
        row.update(
            {
                "crew_id": crew_id,
                "status": TimesheetStatus.DRAFT.value,
                "payment_status": PaymentStatus.PENDING.value,
                "location": location.to_dict() if location else None,
            }
        )
        return self._timesheets.insert(row)

    def update(self, crew_id: str, entry_id: str, data: Dict[str, Any]) -> None:
        entry = self._owned(crew_id, entry_id)
        if entry.status != TimesheetStatus.DRAFT:
            raise ValidationError("Solo le voci in bozza possono essere modificate")
        self._timesheets.update(entry.id, self._entry_values(data, base=entry))

    def submit(self, crew_id: str, entry_id: str) -> None:
        entry = self._owned(crew_id, entry_id)
        if entry.status != TimesheetStatus.DRAFT:
            raise ValidationError("La voce è già stata inviata")
        if not entry.end_time:
            raise ValidationError("Inserisci l'orario di fine prima dell'invio")
        self._timesheets.update(entry.id, {"status": TimesheetStatus.SUBMITTED.value})

    def delete(self, crew_id: str, entry_id: str) -> None:
        entry = self._owned(crew_id, entry_id)
        if entry.status != TimesheetStatus.DRAFT:
            raise ValidationError("Solo le voci in bozza possono essere eliminate")
        self._timesheets.delete(entry.id)
        self._sessions.for_crew(crew_id).end_session(entry.id)

    def update_payment_status(self, crew_id: str, entry_id: str, status: str) -> PaymentStatus:
        try:
            target = PaymentStatus(status)
        except ValueError:
            raise ValidationError("Stato pagamento non valido")
        if target not in CREW_PAYMENT_STATUSES:
            raise ValidationError("Stato pagamento non modificabile dal dipendente")

        entry = self._owned(crew_id, entry_id)
        if PAYMENT_FLOW.index(target) <= PAYMENT_FLOW.index(entry.payment_status):
            raise ValidationError("Lo stato di pagamento può solo avanzare")
        self._timesheets.update(entry.id, {"payment_status": target.value})
        return target

    # -- rectification ----------------------------------------------------

    def rectify(
        self,
        crew_id: str,
        *,
        event_id: str,
        start_time: str,
        end_time: str,
        break_minutes: int = 0,
        note: str,
        entry_id: Optional[str] = None,
        employee_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Correct an event day's times. Creates the entry when none was recorded."""
        if not start_time or not end_time:
            raise ValidationError("Inserisci sia orario di check-in che di check-out")
        start = require_time(start_time, "Orario check-in")
        end = require_time(end_time, "Orario check-out")
        hours = net_hours(start, end, break_minutes)
        if hours <= 0:
            raise ValidationError("L'orario di check-out deve essere successivo al check-in")
        note = require_min_length(note, "Motivazione della rettifica", RECTIFICATION_NOTE_MIN_LENGTH)

        stamp = {
            "rectified_start_time": start,
            "rectified_end_time": end,
            "start_time": start,
            "end_time": end,
            "total_hours": hours,
            "break_minutes": int(break_minutes or 0),
            "is_rectified": True,
            "rectified_by": crew_id,
            "rectified_at": (now or now_local()).isoformat(),
            "rectification_notes": note,
        }
        if employee_notes and employee_notes.strip():
            stamp["notes"] = employee_notes.strip()

        if entry_id:
            entry = self._owned(crew_id, entry_id)
            if not entry.is_rectified:
                stamp["original_start_time"] = entry.start_time
                stamp["original_end_time"] = entry.end_time
            self._timesheets.update(entry.id, stamp)
            return entry.id

        event = self._timesheets.get_event_for_crew(crew_id, event_id)
        if event is None:
            raise NotFoundError("Evento non assegnato")
        created = self._timesheets.insert(
            {
                **stamp,
                "crew_id": crew_id,
                "event_id": event.id,
                "date": event.start_date,
                "status": TimesheetStatus.SUBMITTED.value,
                "tracking_type": TrackingType.HOURS.value,
                "retention_percentage": 0,
                "gross_amount": 0,
                "net_amount": 0,
            }
        )
        return created.id
