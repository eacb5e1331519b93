from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from datetime import datetime, timedelta
from typing import List, Optional

import mysql.connector

from ..common.datetime_utils import (
    current_hhmm,
    hhmm_to_minutes,
    normalize_time,
    now_local,
    parse_iso_date,
    to_local,
    today_string,
)
from ..common.geo import distance_meters
from ..common.time_format import extra_shift_benefit_details, span_minutes
from ..common.validators import require_time
from ..core.constants import (
    AUTO_CHECKOUT_AFTER_MINUTES,
    AUTO_LUNCH_BREAK_END,
    AUTO_LUNCH_BREAK_START,
    CHECKIN_MAX_DISTANCE_METERS,
    DEFAULT_LUNCH_BREAK_MINUTES,
    DEFAULT_SHIFT_END,
    DEFAULT_SHIFT_START,
    EARLY_CHECKIN_MINUTES,
    LATE_BREAK_PROMPT_HOURS,
    LOCATION_ALERT_DISTANCE_METERS,
)
from ..core.enums import CheckInStatus, MutationKind, SessionType
from ..core.exceptions import (
    CheckInInProgressError,
    ConnectivityError,
    DomainError,
    DuplicateCheckInError,
    LocationError,
    NotFoundError,
    ValidationError,
)
from ..crew.service import CrewService
from ..location.model import Location
from ..offline.queue import OfflineQueue
from ..sessions.model import Session
from ..sessions.registry import SessionRegistry
from ..sessions.service import SessionService
from ..shifts.factory import ShiftTimingStrategyFactory
from ..shifts.model import ShiftTiming, WarehouseShift
from ..shifts.repository import ShiftRepository
from ..shifts.timing import validate_shift_timing
from ..warehouses.model import Warehouse
from ..warehouses.repository import WarehouseRepository
from .model import EXTRA_TABLE, WAREHOUSE_TABLE, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

GPS_FORCED_CHECKIN_REASON = "GPS non disponibile - Check-in forzato dall'utente"
GPS_FORCED_BREAK_REASON = "GPS non disponibile - Pausa forzata dall'utente"


@dataclass(frozen=True)
class CheckInResult:
    record_id: str
    check_in_time: str
    scheduled_end_time: Optional[str]
    forced: bool = False
    queued_offline: bool = False
    location_alert: bool = False
    distance_from_warehouse: Optional[float] = None
    session: Optional[Session] = None

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "check_in_time": self.check_in_time,
            "scheduled_end_time": self.scheduled_end_time,
            "forced": self.forced,
            "queued_offline": self.queued_offline,
            "location_alert": self.location_alert,
            "distance_from_warehouse": self.distance_from_warehouse,
            "session": self.session.to_dict() if self.session else None,
        }


@dataclass(frozen=True)
class ShiftOption:
    shift: WarehouseShift
    timing: ShiftTiming
    checked_in: bool = False

    def to_dict(self) -> dict:
        s = self.shift
        return {
            "shift_id": s.shift_id,
            "warehouse_id": s.warehouse_id,
            "warehouse_name": s.warehouse_name,
            "warehouse_address": s.warehouse_address,
            "shift_name": s.shift_name,
            "shift_date": s.shift_date,
            "start_time": s.start_time,
            "end_time": s.end_time,
            "has_lunch_break": s.has_lunch_break,
            "checked_in": self.checked_in,
            "timing": self.timing.to_dict(),
        }


@dataclass
class _GpsStamp:
    location: Optional[Location]
    forced: bool = False
    reason: Optional[str] = None
    payload: Optional[dict] = None


def _gps_or_forced(location: Optional[Location], *, force: bool, gps_error: Optional[str], default_reason: str, refused: str) -> _GpsStamp:
    if location is not None:
        return _GpsStamp(location, payload=location.to_dict())
    if not force:
        raise LocationError(refused)
    reason = (gps_error or "").strip() or default_reason
    logger.warning("GPS bypassed by the crew member: %s", reason)
    return _GpsStamp(None, forced=True, reason=reason)


def _meal_fields(*, company_meal: bool, meal_voucher: bool, company_meal_cost: float) -> dict:
    if company_meal and meal_voucher:
        raise ValidationError("Scegli il pasto aziendale oppure il buono pasto, non entrambi")
    if company_meal:
        notes = "Pasto aziendale richiesto"
    elif meal_voucher:
        notes = "Buono pasto richiesto"
    else:
        notes = None
    return {
        "company_meal": company_meal,
        "meal_voucher": meal_voucher,
        "meal_cost": company_meal_cost if company_meal else 0.0,
        "meal_notes": notes,
    }


def scheduled_end_at(record: AttendanceRecord, tz) -> datetime:
    """Datetime the record's shift is due to end.

    Overnight shifts (end <= start) end on the day after the check-in, unless
    the check-in itself already happened after midnight.
    """
    start = hhmm_to_minutes(normalize_time(record.shift_start_time, DEFAULT_SHIFT_START))
    end = hhmm_to_minutes(normalize_time(record.shift_end_time, DEFAULT_SHIFT_END))
    checked_in = hhmm_to_minutes(normalize_time(record.check_in_time, DEFAULT_SHIFT_START))
    end_at = datetime.combine(parse_iso_date(record.date), datetime.min.time(), tzinfo=tz) + timedelta(minutes=end)
    if end <= start and checked_in >= end:
        end_at += timedelta(days=1)
    return end_at


def _one_check_in_at_a_time(method):
    @wraps(method)
    def wrapper(self, crew_id, *args, **kwargs):
        with self._processing(crew_id):
            return method(self, crew_id, *args, **kwargs)

    return wrapper


class AttendanceService:
    """Warehouse and extra shift check-in, breaks, notes and auto-checkout."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        warehouses: WarehouseRepository,
        crew: CrewService,
        sessions: SessionRegistry,
        *,
        offline: Optional[OfflineQueue] = None,
        strategy_factory: Optional[ShiftTimingStrategyFactory] = None,
        grace_minutes: int = EARLY_CHECKIN_MINUTES,
    ):
        self._attendance = attendance
        self._shifts = shifts
        self._warehouses = warehouses
        self._crew = crew
        self._sessions = sessions
        self._offline = offline
        self._factory = strategy_factory or ShiftTimingStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._in_flight: set = set()
        self._in_flight_lock = threading.Lock()

    @contextmanager
    def _processing(self, crew_id: str):
        with self._in_flight_lock:
            if crew_id in self._in_flight:
                raise CheckInInProgressError("Check-in già in elaborazione, attendi il completamento")
            self._in_flight.add(crew_id)
        try:
            yield
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(crew_id)

    # -- shifts -----------------------------------------------------------

    def timing_for(self, shift: WarehouseShift, now: Optional[datetime] = None) -> ShiftTiming:
        return validate_shift_timing(shift, now, factory=self._factory, grace_minutes=self._grace_minutes)

    def list_shifts(self, crew_id: str, now: Optional[datetime] = None) -> List[ShiftOption]:
        now = now or now_local()
        shifts = self._shifts.list_upcoming_for_crew(crew_id, today_string(now))
        done = {r.shift_id for r in self._attendance.list_for_crew_on(crew_id, today_string(now)) if r.shift_id}
        return [ShiftOption(s, self.timing_for(s, now), checked_in=s.shift_id in done) for s in shifts]

    def match_warehouse(self, code: str) -> Warehouse:
        """Warehouse whose backup code (or printed QR value) equals ``code``."""
        code = (code or "").strip()
        if not code:
            raise ValidationError("Codice QR o codice backup obbligatorio")
        warehouses = list(self._warehouses.list_all())
        if not warehouses:
            raise NotFoundError("Nessun magazzino caricato dal database! Verifica connessione e permessi.")
        for w in warehouses:
            if code in (w.backup_code, w.qr_code_value):
                return w
        raise NotFoundError(
            f'Il codice backup "{code}" non corrisponde a nessun magazzino registrato. '
            "Verifica di aver inserito il codice corretto."
        )

    # -- check-in ---------------------------------------------------------

    def _proximity(self, warehouse: Warehouse, location: Location) -> tuple[bool, Optional[float]]:
        if not warehouse.has_coordinates:
            return False, None
        distance = distance_meters(location.latitude, location.longitude, warehouse.latitude, warehouse.longitude)
        if distance > CHECKIN_MAX_DISTANCE_METERS:
            logger.warning("Check-in %dm from warehouse %s (limit %dm)", round(distance), warehouse.name, CHECKIN_MAX_DISTANCE_METERS)
        return distance > LOCATION_ALERT_DISTANCE_METERS, round(distance, 1)

    @_one_check_in_at_a_time
    def check_in(
        self,
        crew_id: str,
        *,
        shift_id: str,
        code: str,
        location: Optional[Location] = None,
        force: bool = False,
        gps_error: Optional[str] = None,
        company_meal: bool = False,
        meal_voucher: bool = False,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        now = now or now_local()
        shift = self._shifts.get_by_id(shift_id)
        if not shift or shift.crew_id != crew_id:
            raise NotFoundError("Turno non selezionato")

        timing = self.timing_for(shift, now)
        if not timing.is_valid or not timing.can_check_in:
            raise ValidationError(f"Impossibile procedere: {timing.reason}")

        warehouse = self.match_warehouse(code)
        gps = _gps_or_forced(
            location,
            force=force,
            gps_error=gps_error,
            default_reason=GPS_FORCED_CHECKIN_REASON,
            refused="Posizione GPS non disponibile. Puoi forzare il check-in senza GPS.",
        )
        meals = _meal_fields(
            company_meal=company_meal,
            meal_voucher=meal_voucher,
            company_meal_cost=self._crew.meal_benefits_for(crew_id).company_meal_cost,
        )

        check_in_time = current_hhmm(now)
        shift_date = shift.shift_date[:10]
        end_time = normalize_time(shift.end_time, DEFAULT_SHIFT_END)
        break_minutes = DEFAULT_LUNCH_BREAK_MINUTES if shift.has_lunch_break else 0

        alert, distance = False, None
        if gps.location is not None:
            alert, distance = self._proximity(warehouse, gps.location)

        row = {
            "warehouse_id": warehouse.id,
            "warehouse_name": warehouse.name,
            "crew_id": crew_id,
            "date": today_string(now),
            "check_in_time": check_in_time,
            "status": CheckInStatus.ACTIVE.value,
            "location": gps.payload,
            "forced_checkin": gps.forced,
            "gps_error_reason": gps.reason,
            "location_alert": alert,
            "distance_from_warehouse": distance,
            "shift_id": shift.shift_id,
            "shift_start_time": shift.start_time,
            "shift_end_time": end_time,
            "break_minutes": break_minutes,
            **meals,
        }

        try:
            if self._attendance.find_active_for_shift(crew_id=crew_id, shift_id=shift.shift_id, work_date=shift_date):
                raise DuplicateCheckInError("Esiste già un check-in attivo per questo turno.")
            record = self._attendance.insert(row, table=WAREHOUSE_TABLE)
        except ConnectivityError:
            if self._offline is None:
                raise
            row["id"] = str(uuid.uuid4())
            queued = self._offline.enqueue(MutationKind.CHECKIN, row)
            logger.warning("Check-in for shift %s saved offline as record %s (%s)", shift.shift_id, row["id"], queued.id)
            return CheckInResult(
                record_id=row["id"],
                check_in_time=check_in_time,
                scheduled_end_time=end_time,
                forced=gps.forced,
                queued_offline=True,
                location_alert=alert,
                distance_from_warehouse=distance,
            )

        session = Session(
            id=record.id,
            type=SessionType.WAREHOUSE,
            warehouse_id=warehouse.id,
            check_in_time=check_in_time,
            scheduled_end_time=end_time,
            shift_name=f"Turno {shift.warehouse_name}",
            shift_start_time=shift.start_time,
            shift_end_time=end_time,
            has_lunch_break=shift.has_lunch_break,
            has_company_meal=company_meal,
            has_meal_voucher=meal_voucher,
            break_minutes=break_minutes,
            table_name=WAREHOUSE_TABLE,
        )
        self._sessions.for_crew(crew_id).start_session(session)
        logger.info("Crew %s checked in at %s for shift %s", crew_id, check_in_time, shift.shift_id)
        return CheckInResult(
            record_id=record.id,
            check_in_time=check_in_time,
            scheduled_end_time=end_time,
            forced=gps.forced,
            location_alert=alert,
            distance_from_warehouse=distance,
            session=session,
        )

    @_one_check_in_at_a_time
    def start_extra_shift(
        self,
        crew_id: str,
        *,
        location: Optional[Location] = None,
        force: bool = False,
        gps_error: Optional[str] = None,
        company_meal: bool = False,
        meal_voucher: bool = False,
        shift_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        """Extra shift: no warehouse, no schedule, default lunch break."""
        now = now or now_local()
        gps = _gps_or_forced(
            location,
            force=force,
            gps_error=gps_error,
            default_reason="GPS non disponibile - Check-in forzato",
            refused="Impossibile ottenere la posizione. Puoi forzare il check-in senza GPS.",
        )
        meals = _meal_fields(
            company_meal=company_meal,
            meal_voucher=meal_voucher,
            company_meal_cost=self._crew.meal_benefits_for(crew_id).company_meal_cost,
        )
        if self._attendance.list_open_for_crew(crew_id, [today_string(now)], table=EXTRA_TABLE):
            raise DuplicateCheckInError("Hai già un turno extra attivo oggi.")

        check_in_time = current_hhmm(now)
        record = self._attendance.insert(
            {
                "warehouse_id": None,
                "crew_id": crew_id,
                "date": today_string(now),
                "check_in_time": check_in_time,
                "status": CheckInStatus.ACTIVE.value,
                "location": gps.payload,
                "forced_checkin": gps.forced,
                "gps_error_reason": gps.reason,
                "shift_id": None,
                "break_minutes": DEFAULT_LUNCH_BREAK_MINUTES,
                "notes": "TURNO EXTRA",
                "shift_notes": (shift_notes or "").strip() or None,
                **meals,
            },
            table=EXTRA_TABLE,
        )
        session = Session(
            id=record.id,
            type=SessionType.EXTRA,
            check_in_time=check_in_time,
            scheduled_end_time=DEFAULT_SHIFT_END,
            shift_name="Turno Extra",
            has_lunch_break=True,
            has_company_meal=company_meal,
            has_meal_voucher=meal_voucher,
            break_minutes=DEFAULT_LUNCH_BREAK_MINUTES,
            table_name=EXTRA_TABLE,
        )
        self._sessions.for_crew(crew_id).start_session(session)
        return CheckInResult(record_id=record.id, check_in_time=check_in_time, scheduled_end_time=None, forced=gps.forced, session=session)

    # -- check-out --------------------------------------------------------

    def check_out(
        self,
        crew_id: str,
        *,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Close the current (or the given) session. Returns the check-out time."""
        sessions = self._sessions.for_crew(crew_id)
        if sessions.current is None:
            sessions.load_active_session(now)
        if session_id and sessions.select(session_id) is None:
            raise NotFoundError("Sessione non trovata")
        current = sessions.current
        if current is None:
            raise ValidationError("Nessuna sessione attiva")

        now = now or now_local()
        if not sessions.manual_check_out(location=location, notes=notes, now=now):
            raise ValidationError("Impossibile completare il check-out")
        sessions.end_session(current.id)
        return current_hhmm(now)

    # -- breaks -----------------------------------------------------------

    def _current_record(self, crew_id: str) -> AttendanceRecord:
        sessions = self._sessions.for_crew(crew_id)
        if sessions.current is None:
            sessions.load_active_session()
        current = sessions.current
        if current is None or current.type == SessionType.EVENT:
            raise ValidationError("Nessuna sessione warehouse attiva")
        record = self._attendance.get(current.id, table=current.table_name or WAREHOUSE_TABLE)
        if record is None:
            raise NotFoundError("Check-in non trovato")
        return record

    def break_status(self, crew_id: str) -> dict:
        record = self._current_record(crew_id)
        return {
            "in_progress": record.lunch_in_progress,
            "start": record.lunch_break_start,
            "end": record.lunch_break_end,
            "break_minutes": record.break_minutes,
        }

    def start_break(
        self,
        crew_id: str,
        *,
        location: Optional[Location] = None,
        force: bool = False,
        gps_error: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        record = self._current_record(crew_id)
        if record.lunch_in_progress:
            raise ValidationError("Pausa già in corso")
        if record.lunch_done:
            raise ValidationError("Pausa già registrata per questo turno")

        gps = _gps_or_forced(
            location,
            force=force,
            gps_error=gps_error,
            default_reason=GPS_FORCED_BREAK_REASON,
            refused="GPS non disponibile. Puoi forzare l'inizio pausa senza GPS.",
        )
        start = current_hhmm(now or now_local())
        values = {"lunch_break_start": start, "break_start_forced": gps.forced}
        if gps.location is not None:
            values["break_start_location"] = gps.location.to_dict(forced=False)
        if gps.forced:
            values["break_start_gps_error"] = gps.reason
        self._attendance.update(record.id, values, table=record.table)
        return start

    def end_break(
        self,
        crew_id: str,
        *,
        location: Optional[Location] = None,
        force: bool = False,
        gps_error: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        record = self._current_record(crew_id)
        if not record.lunch_in_progress:
            raise ValidationError("Devi prima iniziare una pausa")

        gps = _gps_or_forced(
            location,
            force=force,
            gps_error=gps_error,
            default_reason=GPS_FORCED_BREAK_REASON,
            refused="GPS non disponibile. Puoi forzare la fine pausa senza GPS.",
        )
        end = current_hhmm(now or now_local())
        values = {
            "lunch_break_end": end,
            "has_taken_break": True,
            "break_registered_late": False,
            "break_end_forced": gps.forced,
        }
        if gps.location is not None:
            values["break_end_location"] = gps.location.to_dict(forced=False)
        if gps.forced:
            values["break_end_gps_error"] = gps.reason
        self._attendance.update(record.id, values, table=record.table)
        return {"start": record.lunch_break_start, "end": end, "minutes": span_minutes(record.lunch_break_start, end, wrap=False)}

    def pending_late_break(self, crew_id: str, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        """Completed shift with a planned but unrecorded break, closed within the last hours."""
        now = to_local(now or now_local())
        for record in self._attendance.list_completed(crew_id, limit=10):
            if record.break_minutes <= 0 or record.has_taken_break or record.lunch_break_start or record.break_auto_applied:
                continue
            if not record.check_out_time:
                continue
            out = datetime.combine(parse_iso_date(record.date), datetime.min.time(), tzinfo=now.tzinfo) + timedelta(
                minutes=hhmm_to_minutes(record.check_out_time)
            )
            if record.check_in_time and record.check_out_time < record.check_in_time:
                out += timedelta(days=1)
            if timedelta(0) <= now - out <= timedelta(hours=LATE_BREAK_PROMPT_HOURS):
                return record
        return None

    def register_late_break(self, crew_id: str, record_id: str, start: str, end: str, *, now: Optional[datetime] = None) -> int:
        """Record the lunch break after check-out. Returns its duration in minutes."""
        if not start or not end:
            raise ValidationError("Inserisci sia l'orario di inizio che di fine pausa")
        start = require_time(start, "Inizio pausa")
        end = require_time(end, "Fine pausa")
        if end <= start:
            raise ValidationError("L'orario di fine pausa deve essere dopo l'inizio")

        record = self._attendance.get(record_id, table=WAREHOUSE_TABLE)
        if record is None or record.crew_id != crew_id:
            raise NotFoundError("Check-in non trovato")
        if record.status != CheckInStatus.COMPLETED.value:
            raise ValidationError("La pausa tardiva si registra solo dopo il check-out")

        self._attendance.update(
            record.id,
            {
                "lunch_break_start": start,
                "lunch_break_end": end,
                "has_taken_break": True,
                "break_registered_late": True,
                "break_modified_at": (now or now_local()).isoformat(),
            },
            table=WAREHOUSE_TABLE,
        )
        return span_minutes(start, end, wrap=False)

    def save_shift_notes(self, crew_id: str, notes: Optional[str]) -> None:
        record = self._current_record(crew_id)
        self._attendance.update(record.id, {"shift_notes": (notes or "").strip() or None}, table=record.table)

    # -- auto-checkout ----------------------------------------------------

    def auto_checkout(self, sessions: SessionService, now: Optional[datetime] = None) -> bool:
        """Close the current warehouse session an hour after its scheduled end."""
        current = sessions.current
        if current is None or current.type != SessionType.WAREHOUSE:
            return False
        record = self._attendance.get(current.id, table=WAREHOUSE_TABLE)
        if record is None or record.status != CheckInStatus.ACTIVE.value or record.check_out_time:
            return False

        now = to_local(now or now_local())
        end_time = normalize_time(record.shift_end_time, DEFAULT_SHIFT_END)
        minutes_late = int((now - scheduled_end_at(record, now.tzinfo)).total_seconds() // 60)
        if minutes_late < AUTO_CHECKOUT_AFTER_MINUTES:
            return False

        hours_late = minutes_late / 60
        values = {
            "check_out_time": end_time,
            "status": CheckInStatus.COMPLETED.value,
            "auto_checkout": True,
            "notes": (
                f"Auto-checkout effettuato alle {end_time}. "
                f"Sessione chiusa automaticamente dopo {hours_late:.1f} ore di ritardo."
            ),
        }
        if record.break_minutes > 0 and not record.has_taken_break and not record.lunch_break_start:
            values.update(
                {
                    "has_taken_break": True,
                    "break_auto_applied": True,
                    "lunch_break_start": AUTO_LUNCH_BREAK_START,
                    "lunch_break_end": AUTO_LUNCH_BREAK_END,
                }
            )
        if not self._attendance.update(record.id, values, table=WAREHOUSE_TABLE):
            return False
        sessions.end_session(current.id)
        logger.info("Auto-checkout of record %s at %s (%.1f h late)", record.id, end_time, hours_late)
        return True

    def auto_checkout_sweep(self, now: Optional[datetime] = None) -> int:
        closed = 0
        for sessions in self._sessions.all():
            try:
                if self.auto_checkout(sessions, now):
                    closed += 1
            except (DomainError, mysql.connector.Error):
                logger.exception("Auto-checkout failed for crew %s", sessions.crew_id)
        return closed

    # -- extra shift benefit ----------------------------------------------

    def extra_shift_benefit(self, crew_id: str, record_id: str) -> dict:
        record = self._attendance.get(record_id, table=EXTRA_TABLE)
        if record is None or record.crew_id != crew_id:
            raise NotFoundError("Turno extra non trovato")
        minutes = round(record.effective().total_hours * 60)
        return extra_shift_benefit_details(minutes, self._crew.extra_shift_rate_for(crew_id))
