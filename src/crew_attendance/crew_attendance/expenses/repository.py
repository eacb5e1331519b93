from __future__ import annotations

from typing import Any, Dict, Protocol, Sequence

from .model import Expense


class ExpenseRepository(Protocol):
    def list_for_crew(self, crew_id: str) -> Sequence[Expense]:
        """Newest expense date first."""

        raise NotImplementedError

    def insert(self, row: Dict[str, Any]) -> Expense:
        raise NotImplementedError
