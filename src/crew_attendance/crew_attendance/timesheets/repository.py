from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .model import CrewEvent, TimesheetEntry


class TimesheetRepository(Protocol):
    def get(self, entry_id: str) -> Optional[TimesheetEntry]:
        raise NotImplementedError

    def list_open_for_crew(self, crew_id: str, work_date: str) -> Sequence[TimesheetEntry]:
        """Draft entries of that day still without an end time."""

        raise NotImplementedError

    def list_for_crew(
        self,
        crew_id: str,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[TimesheetEntry]:
        raise NotImplementedError

    def insert(self, row: Dict[str, Any]) -> TimesheetEntry:
        raise NotImplementedError

    def update(self, entry_id: str, values: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, entry_id: str) -> bool:
        raise NotImplementedError

    # Events
    def list_events_for_crew_on(self, crew_id: str, work_date: str) -> Sequence[CrewEvent]:
        raise NotImplementedError

    def get_event_for_crew(self, crew_id: str, event_id: str) -> Optional[CrewEvent]:
        raise NotImplementedError
