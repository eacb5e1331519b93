from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import WarehouseShift


class ShiftRepository(Protocol):
    def list_upcoming_for_crew(self, crew_id: str, from_date: str) -> Sequence[WarehouseShift]:
        """Assigned shifts with date >= from_date, ordered by date then start time."""

        raise NotImplementedError

    def get_by_id(self, shift_id: str) -> Optional[WarehouseShift]:
        raise NotImplementedError
