from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import normalize_time, to_local_date_string
from ..core.enums import CheckInStatus
from ..database.mysql_base import load_json
from ..database.store import RemoteStore
from .model import ENRICHED_VIEW, WAREHOUSE_TABLE, AttendanceRecord
from .repository import AttendanceRepository

_TIME_COLUMNS = (
    "check_in_time",
    "check_out_time",
    "shift_start_time",
    "shift_end_time",
    "lunch_break_start",
    "lunch_break_end",
    "dinner_break_start",
    "dinner_break_end",
    "rectified_check_in_time",
    "rectified_check_out_time",
    "rectified_lunch_start",
    "rectified_lunch_end",
    "rectified_dinner_start",
    "rectified_dinner_end",
)
_BOOL_COLUMNS = (
    "has_taken_break",
    "break_auto_applied",
    "break_registered_late",
    "company_meal",
    "meal_voucher",
    "location_alert",
    "checkout_location_alert",
    "forced_checkin",
    "auto_checkout",
    "overtime_requested",
)
_FLOAT_COLUMNS = (
    "meal_cost",
    "distance_from_warehouse",
    "checkout_distance_from_warehouse",
    "total_hours",
    "net_hours",
    "rectified_total_hours",
)
_TEXT_COLUMNS = (
    "warehouse_name",
    "meal_notes",
    "gps_error_reason",
    "notes",
    "shift_notes",
    "rectification_note",
    "rectified_by",
)
_OPEN_STATUSES = (CheckInStatus.ACTIVE.value, CheckInStatus.CHECKED_IN.value)


def _time_or_none(value) -> Optional[str]:
    return normalize_time(value) if value not in (None, "") else None


def _date_str(value) -> str:
    return value[:10] if isinstance(value, str) else to_local_date_string(value)


def row_to_record(r: Dict[str, Any], table: str = WAREHOUSE_TABLE) -> AttendanceRecord:
    kwargs: Dict[str, Any] = {
        "id": str(r["id"]),
        "crew_id": str(r["crew_id"]),
        "date": _date_str(r["date"]),
        "status": r.get("status") or CheckInStatus.ACTIVE.value,
        "table": table,
        "warehouse_id": str(r["warehouse_id"]) if r.get("warehouse_id") else None,
        "shift_id": str(r["shift_id"]) if r.get("shift_id") else None,
        "break_minutes": int(r.get("break_minutes") or 0),
        "location": load_json(r.get("location")),
        "checkout_location": load_json(r.get("checkout_location")),
    }
    for col in _TIME_COLUMNS:
        kwargs[col] = _time_or_none(r.get(col))
    for col in _BOOL_COLUMNS:
        kwargs[col] = bool(r.get(col) or 0)
    for col in _FLOAT_COLUMNS:
        value = r.get(col)
        kwargs[col] = float(value) if value is not None else None
    for col in _TEXT_COLUMNS:
        kwargs[col] = r.get(col)
    if kwargs["meal_cost"] is None:
        kwargs["meal_cost"] = 0.0
    rectified_at = r.get("rectified_at")
    kwargs["rectified_at"] = rectified_at.isoformat() if hasattr(rectified_at, "isoformat") else rectified_at
    return AttendanceRecord(**kwargs)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, store: RemoteStore):
        self._store = store

    def get(self, record_id: str, *, table: str = WAREHOUSE_TABLE) -> Optional[AttendanceRecord]:
        r = self._store.table(table).select().eq("id", record_id).maybe_single()
        return row_to_record(r, table) if r else None

    def list_open_for_crew(self, crew_id: str, dates: Sequence[str], *, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        rows = (
            self._store.table(table)
            .select()
            .eq("crew_id", crew_id)
            .in_("date", list(dates))
            .in_("status", _OPEN_STATUSES)
            .is_null("check_out_time")
            .execute()
        )
        return [row_to_record(r, table) for r in rows]

    def list_for_crew_on(self, crew_id: str, work_date: str, *, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        rows = self._store.table(table).select().eq("crew_id", crew_id).eq("date", work_date).execute()
        return [row_to_record(r, table) for r in rows]

    def find_active_for_shift(self, *, crew_id: str, shift_id: str, work_date: str) -> Optional[AttendanceRecord]:
        r = (
            self._store.table(WAREHOUSE_TABLE)
            .select()
            .eq("crew_id", crew_id)
            .eq("shift_id", shift_id)
            .eq("date", work_date)
            .eq("status", CheckInStatus.ACTIVE.value)
            .maybe_single()
        )
        return row_to_record(r) if r else None

    def list_between(self, *, crew_id: str, start_date: str, end_date: str) -> Sequence[AttendanceRecord]:
        rows = (
            self._store.table(ENRICHED_VIEW)
            .select()
            .eq("crew_id", crew_id)
            .gte("date", start_date)
            .lte("date", end_date)
            .order("date", ascending=False)
            .execute()
        )
        return [row_to_record(r, WAREHOUSE_TABLE) for r in rows]

    def list_completed(self, crew_id: str, *, limit: int = 100, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        rows = (
            self._store.table(table)
            .select()
            .eq("crew_id", crew_id)
            .eq("status", CheckInStatus.COMPLETED.value)
            .order("date", ascending=False)
            .limit(limit)
            .execute()
        )
        return [row_to_record(r, table) for r in rows]

    def insert(self, row: Dict[str, Any], *, table: str = WAREHOUSE_TABLE) -> AttendanceRecord:
        saved = self._store.table(table).insert(row)
        return row_to_record(saved, table)

    def update(self, record_id: str, values: Dict[str, Any], *, table: str = WAREHOUSE_TABLE) -> bool:
        return self._store.table(table).eq("id", record_id).update(values) > 0
