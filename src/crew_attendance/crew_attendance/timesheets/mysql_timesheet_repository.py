from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import normalize_time, to_local_date_string
from ..core.enums import PaymentStatus, TimesheetStatus, TrackingType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from ..database.store import RemoteStore
from .model import TIMESHEET_TABLE, CrewEvent, TimesheetEntry
from .repository import TimesheetRepository


def _time(value) -> Optional[str]:
    return normalize_time(value) if value not in (None, "") else None


def _date(value) -> Optional[str]:
    if value in (None, ""):
        return None
    return value[:10] if isinstance(value, str) else to_local_date_string(value)


def _float(value, default: Optional[float] = None) -> Optional[float]:
    return float(value) if value is not None else default


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, store: RemoteStore, conn_factory: DatabaseConnection):
        self._store = store
        self._conn_factory = conn_factory

    @staticmethod
    def _row_to_entry(r: Dict[str, Any], event_title: Optional[str] = None) -> TimesheetEntry:
        rectified_at = r.get("rectified_at")
        return TimesheetEntry(
            id=str(r["id"]),
            crew_id=str(r["crew_id"]),
            event_id=str(r["event_id"]) if r.get("event_id") else None,
            date=_date(r["date"]),
            start_time=_time(r.get("start_time")),
            end_time=_time(r.get("end_time")),
            end_date=_date(r.get("end_date")),
            break_minutes=int(r.get("break_minutes") or 0),
            tracking_type=TrackingType(r.get("tracking_type") or TrackingType.HOURS.value),
            hourly_rate=_float(r.get("hourly_rate")),
            daily_rate=_float(r.get("daily_rate")),
            total_days=_float(r.get("total_days")),
            retention_percentage=_float(r.get("retention_percentage"), 0.0),
            total_hours=_float(r.get("total_hours"), 0.0),
            gross_amount=_float(r.get("gross_amount"), 0.0),
            net_amount=_float(r.get("net_amount"), 0.0),
            payment_status=PaymentStatus(r.get("payment_status") or PaymentStatus.PENDING.value),
            status=TimesheetStatus(r.get("status") or TimesheetStatus.DRAFT.value),
            location=load_json(r.get("location")),
            company_meal=bool(r.get("company_meal") or 0),
            meal_voucher=bool(r.get("meal_voucher") or 0),
            notes=r.get("notes"),
            event_title=event_title or r.get("event_title"),
            original_start_time=_time(r.get("original_start_time")),
            original_end_time=_time(r.get("original_end_time")),
            rectified_start_time=_time(r.get("rectified_start_time")),
            rectified_end_time=_time(r.get("rectified_end_time")),
            is_rectified=bool(r.get("is_rectified") or 0),
            rectification_notes=r.get("rectification_notes"),
            rectified_by=r.get("rectified_by"),
            rectified_at=rectified_at.isoformat() if hasattr(rectified_at, "isoformat") else rectified_at,
        )

    def _event_titles(self, rows: Sequence[Dict[str, Any]]) -> Dict[str, str]:
        ids = sorted({str(r["event_id"]) for r in rows if r.get("event_id")})
        if not ids:
            return {}
        events = self._store.table("crew_events").select("id, title").in_("id", ids).execute()
        return {str(e["id"]): e.get("title") or "Evento" for e in events}

    def _to_entries(self, rows: Sequence[Dict[str, Any]]) -> Sequence[TimesheetEntry]:
        titles = self._event_titles(rows)
        return [self._row_to_entry(r, titles.get(str(r.get("event_id")))) for r in rows]

    def get(self, entry_id: str) -> Optional[TimesheetEntry]:
        r = self._store.table(TIMESHEET_TABLE).select().eq("id", entry_id).maybe_single()
        if not r:
            return None
        return self._to_entries([r])[0]

    def list_open_for_crew(self, crew_id: str, work_date: str) -> Sequence[TimesheetEntry]:
        rows = (
            self._store.table(TIMESHEET_TABLE)
            .select()
            .eq("crew_id", crew_id)
            .eq("date", work_date)
            .eq("status", TimesheetStatus.DRAFT.value)
            .is_null("end_time")
            .execute()
        )
        return self._to_entries(rows)

    def list_for_crew(
        self,
        crew_id: str,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[TimesheetEntry]:
        query = self._store.table(TIMESHEET_TABLE).select().eq("crew_id", crew_id)
        if start_date:
            query = query.gte("date", start_date)
        if end_date:
            query = query.lte("date", end_date)
        return self._to_entries(query.order("date", ascending=False).execute())

    def insert(self, row: Dict[str, Any]) -> TimesheetEntry:
        saved = self._store.table(TIMESHEET_TABLE).insert(row)
        return self._row_to_entry(saved)

    def update(self, entry_id: str, values: Dict[str, Any]) -> bool:
        return self._store.table(TIMESHEET_TABLE).eq("id", entry_id).update(values) > 0

    def delete(self, entry_id: str) -> bool:
        return self._store.table(TIMESHEET_TABLE).eq("id", entry_id).delete() > 0

    # Events: assignment rows carry the agreed rate, so join them here.

    @staticmethod
    def _row_to_event(r: Dict[str, Any]) -> CrewEvent:
        return CrewEvent(
            id=str(r["id"]),
            title=r.get("title") or "Evento",
            start_date=_date(r["start_date"]),
            end_date=_date(r.get("end_date")),
            location=r.get("location"),
            is_travel=bool(r.get("is_travel") or 0),
            rate=_float(r.get("assigned_rate")),
        )

    def list_events_for_crew_on(self, crew_id: str, work_date: str) -> Sequence[CrewEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.id, e.title, e.start_date, e.end_date, e.location, e.is_travel, a.assigned_rate
                FROM crew_event_assignments a
                JOIN crew_events e ON e.id = a.event_id
                WHERE a.crew_id=%s AND e.start_date<=%s AND COALESCE(e.end_date, e.start_date)>=%s
                ORDER BY e.start_date ASC, e.title ASC
                """,
                (crew_id, work_date, work_date),
            )
            return [self._row_to_event(r) for r in fetchall(cur)]

    def get_event_for_crew(self, crew_id: str, event_id: str) -> Optional[CrewEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.id, e.title, e.start_date, e.end_date, e.location, e.is_travel, a.assigned_rate
                FROM crew_event_assignments a
                JOIN crew_events e ON e.id = a.event_id
                WHERE a.crew_id=%s AND e.id=%s
                """,
                (crew_id, event_id),
            )
            r = fetchone(cur)
            return self._row_to_event(r) if r else None
