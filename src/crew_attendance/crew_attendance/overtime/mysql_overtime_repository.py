from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import OvertimeStatus
from ..database.store import RemoteStore
from .model import OVERTIME_TABLE, OvertimeRequest
from .repository import OvertimeRepository


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, store: RemoteStore):
        self._store = store

    @staticmethod
    def _row_to_request(r: Dict[str, Any]) -> OvertimeRequest:
        created = r.get("created_at")
        return OvertimeRequest(
            id=str(r["id"]),
            crew_id=str(r["crew_id"]),
            minutes=int(r.get("minutes") or 0),
            hourly_rate=float(r.get("hourly_rate") or 0),
            total_amount=float(r.get("total_amount") or 0),
            note=r.get("note") or "",
            status=OvertimeStatus(r.get("status") or OvertimeStatus.PENDING.value),
            attendance_id=str(r["attendance_id"]) if r.get("attendance_id") else None,
            timesheet_entry_id=str(r["timesheet_entry_id"]) if r.get("timesheet_entry_id") else None,
            event_id=str(r["event_id"]) if r.get("event_id") else None,
            created_at=created.isoformat() if hasattr(created, "isoformat") else created,
        )

    def list_for_crew(self, crew_id: str) -> Sequence[OvertimeRequest]:
        rows = self._store.table(OVERTIME_TABLE).select().eq("crew_id", crew_id).order("created_at", ascending=False).execute()
        return [self._row_to_request(r) for r in rows]

    def find_for_attendance(self, attendance_id: str) -> Optional[OvertimeRequest]:
        r = self._store.table(OVERTIME_TABLE).select().eq("attendance_id", attendance_id).maybe_single()
        return self._row_to_request(r) if r else None

    def find_for_timesheet_entry(self, entry_id: str) -> Optional[OvertimeRequest]:
        r = self._store.table(OVERTIME_TABLE).select().eq("timesheet_entry_id", entry_id).maybe_single()
        return self._row_to_request(r) if r else None

    def insert(self, row: Dict[str, Any]) -> OvertimeRequest:
        return self._row_to_request(self._store.table(OVERTIME_TABLE).insert(row))
