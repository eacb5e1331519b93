from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .model import WAREHOUSE_TABLE, AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, record_id: str, *, table: str = WAREHOUSE_TABLE) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_open_for_crew(self, crew_id: str, dates: Sequence[str], *, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        """Records with date in ``dates``, status active/checked_in and no check-out."""

        raise NotImplementedError

    def list_for_crew_on(self, crew_id: str, work_date: str, *, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_active_for_shift(self, *, crew_id: str, shift_id: str, work_date: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_between(self, *, crew_id: str, start_date: str, end_date: str) -> Sequence[AttendanceRecord]:
        """Read-model for reports (enriched with warehouse names)."""

        raise NotImplementedError

    def list_completed(self, crew_id: str, *, limit: int = 100, table: str = WAREHOUSE_TABLE) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, row: Dict[str, Any], *, table: str = WAREHOUSE_TABLE) -> AttendanceRecord:
        raise NotImplementedError

    def update(self, record_id: str, values: Dict[str, Any], *, table: str = WAREHOUSE_TABLE) -> bool:
        raise NotImplementedError
