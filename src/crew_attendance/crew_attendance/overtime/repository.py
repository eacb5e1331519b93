from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .model import OvertimeRequest


class OvertimeRepository(Protocol):
    def list_for_crew(self, crew_id: str) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

    def find_for_attendance(self, attendance_id: str) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def find_for_timesheet_entry(self, entry_id: str) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def insert(self, row: Dict[str, Any]) -> OvertimeRequest:
        raise NotImplementedError
