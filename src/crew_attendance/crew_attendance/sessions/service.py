"""Reconcile the local session list with the remote records.

``load_active_session`` rebuilds the list from the store; ``start_session`` and
``end_session`` patch it locally after a successful remote write;
``manual_check_out`` closes the current session's record remotely.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

import mysql.connector

from ..attendance.model import EXTRA_TABLE, WAREHOUSE_TABLE, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import current_hhmm, now_local, today_string, tomorrow_string
from ..common.geo import distance_meters
from ..common.time_format import span_minutes
from ..core.constants import DEFAULT_SHIFT_END, LOCATION_ALERT_DISTANCE_METERS
from ..core.enums import CheckInStatus, MutationKind, SessionType, TimesheetStatus
from ..core.exceptions import ConnectivityError, DomainError
from ..location.model import Location
from ..offline.queue import OfflineQueue
from ..timesheets.model import TimesheetEntry
from ..timesheets.repository import TimesheetRepository
from ..warehouses.repository import WarehouseRepository
from .model import Session
from .store import SessionStore
from .ticker import ElapsedTicker

logger = logging.getLogger(__name__)


def session_from_record(record: AttendanceRecord, *, shift_name: Optional[str] = None) -> Session:
    is_extra = record.table == EXTRA_TABLE
    end = record.shift_end_time or DEFAULT_SHIFT_END
    return Session(
        id=record.id,
        type=SessionType.EXTRA if is_extra else SessionType.WAREHOUSE,
        check_in_time=record.check_in_time or "00:00",
        scheduled_end_time=end,
        shift_name=shift_name or ("Turno Extra" if is_extra else "Turno Magazzino"),
        warehouse_id=record.warehouse_id,
        shift_start_time=record.shift_start_time,
        shift_end_time=record.shift_end_time,
        has_lunch_break=record.break_minutes > 0,
        has_company_meal=record.company_meal,
        has_meal_voucher=record.meal_voucher,
        break_minutes=record.break_minutes,
        table_name=record.table,
    )


def session_from_entry(entry: TimesheetEntry) -> Session:
    return Session(
        id=entry.id,
        type=SessionType.EVENT,
        event_id=entry.event_id,
        check_in_time=(entry.start_time or "00:00")[:5],
        scheduled_end_time=DEFAULT_SHIFT_END,
        shift_name=entry.event_title or "Evento",
        has_company_meal=entry.company_meal,
        has_meal_voucher=entry.meal_voucher,
        break_minutes=entry.break_minutes,
    )


class SessionService:
    def __init__(
        self,
        crew_id: str,
        attendance: AttendanceRepository,
        timesheets: TimesheetRepository,
        warehouses: WarehouseRepository,
        *,
        store: Optional[SessionStore] = None,
        ticker: Optional[ElapsedTicker] = None,
        offline: Optional[OfflineQueue] = None,
    ):
        self.crew_id = crew_id
        self._attendance = attendance
        self._timesheets = timesheets
        self._warehouses = warehouses
        self.store = store or SessionStore()
        self.ticker = ticker or ElapsedTicker(self.store)
        self._offline = offline

    @property
    def current(self) -> Optional[Session]:
        return self.store.current

    @property
    def active_sessions(self) -> List[Session]:
        return self.store.active_sessions

    def load_active_session(self, now: Optional[datetime] = None) -> List[Session]:
        now = now or now_local()
        # Tomorrow too: a shift starting before midnight may be dated on the next day.
        dates = [today_string(now), tomorrow_string(now)]

        warehouse = list(self._attendance.list_open_for_crew(self.crew_id, dates, table=WAREHOUSE_TABLE))
        extra = list(self._attendance.list_open_for_crew(self.crew_id, dates, table=EXTRA_TABLE))
        events = list(self._timesheets.list_open_for_crew(self.crew_id, today_string(now)))

        sessions = [session_from_record(r) for r in warehouse + extra] + [session_from_entry(e) for e in events]
        current = next((s for s in sessions if s.type == SessionType.WAREHOUSE), None)
        if current is None and sessions:
            current = sessions[0]

        self.store.replace_all(sessions, current)
        self._sync_ticker()
        return sessions

    def start_session(self, session: Session) -> None:
        self.store.put(session)
        self._sync_ticker()

    def select(self, session_id: str) -> Optional[Session]:
        """Nominate one of the active sessions as current."""
        session = self.store.get(session_id)
        if session is not None:
            self.store.put(session)
        return session

    def end_session(self, session_id: Optional[str] = None) -> None:
        self.store.remove(session_id)
        self._sync_ticker()

    def _sync_ticker(self) -> None:
        if self.store.active_sessions or self.store.current:
            self.ticker.start()
        else:
            self.ticker.reset()

    def manual_check_out(
        self,
        location: Optional[Location] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Close the current session's record. Returns False instead of raising."""
        session = self.current
        if session is None:
            return False
        check_out_time = current_hhmm(now or now_local())

        try:
            if session.type == SessionType.EVENT:
                return self._check_out_event(session, check_out_time)
            return self._check_out_record(session, check_out_time, location, notes)
        except ConnectivityError:
            return self._queue_check_out(session, check_out_time, location, notes)
        except (DomainError, mysql.connector.Error):
            logger.exception("Manual check-out failed for session %s", session.id)
            return False

    def _check_out_event(self, session: Session, check_out_time: str) -> bool:
        values = {"end_time": check_out_time, "status": TimesheetStatus.SUBMITTED.value}
        if not self._timesheets.update(session.id, values):
            logger.warning("Event entry %s not found on check-out", session.id)
            return False
        return True

    def _checkout_values(
        self,
        *,
        check_in_time: str,
        check_out_time: str,
        break_minutes: int,
        location: Optional[Location],
        notes: Optional[str],
        warehouse_id: Optional[str],
    ) -> dict:
        total = span_minutes(check_in_time, check_out_time)
        net = total - break_minutes
        values = {
            "check_out_time": check_out_time,
            "status": CheckInStatus.COMPLETED.value,
            "total_hours": round(total / 60, 2),
            "net_hours": round(net / 60, 2),
        }
        if notes and notes.strip():
            values["notes"] = notes.strip()
        if location is not None:
            alert, distance = False, None
            warehouse = self._warehouses.get_by_id(warehouse_id) if warehouse_id else None
            if warehouse is not None and warehouse.has_coordinates:
                meters = distance_meters(location.latitude, location.longitude, warehouse.latitude, warehouse.longitude)
                distance = round(meters)
                alert = meters > LOCATION_ALERT_DISTANCE_METERS
                if alert:
                    logger.warning("Check-out %s is %dm away from warehouse %s", warehouse_id, distance, warehouse.name)
            values["checkout_location"] = location.to_dict()
            values["checkout_location_alert"] = alert
            values["checkout_distance_from_warehouse"] = distance
        return values

    def _check_out_record(self, session: Session, check_out_time: str, location: Optional[Location], notes: Optional[str]) -> bool:
        table = session.table_name or (EXTRA_TABLE if session.type == SessionType.EXTRA else WAREHOUSE_TABLE)
        record = self._attendance.get(session.id, table=table)
        if record is None or not record.check_in_time:
            logger.warning("Record %s not found in %s on check-out", session.id, table)
            return False

        values = self._checkout_values(
            check_in_time=record.check_in_time,
            check_out_time=check_out_time,
            break_minutes=record.break_minutes,
            location=location,
            notes=notes,
            warehouse_id=record.warehouse_id,
        )
        return self._attendance.update(session.id, values, table=table)

    def _queue_check_out(self, session: Session, check_out_time: str, location: Optional[Location], notes: Optional[str]) -> bool:
        """Store unreachable: compute from the local session and queue the write."""
        if self._offline is None or session.type == SessionType.EXTRA:
            logger.warning("Check-out of %s failed: store unreachable", session.id)
            return False

        if session.type == SessionType.EVENT:
            updates = {"end_time": check_out_time, "status": TimesheetStatus.SUBMITTED.value}
            self._offline.enqueue(MutationKind.TIMESHEET, {"id": session.id, "updates": updates})
            return True

        total = span_minutes(session.check_in_time, check_out_time)
        updates = {
            "check_out_time": check_out_time,
            "status": CheckInStatus.COMPLETED.value,
            "total_hours": round(total / 60, 2),
            "net_hours": round((total - session.break_minutes) / 60, 2),
        }
        if notes and notes.strip():
            updates["notes"] = notes.strip()
        if location is not None:
            updates["checkout_location"] = location.to_dict()
        self._offline.enqueue(MutationKind.CHECKOUT, {"id": session.id, "updates": updates})
        return True
