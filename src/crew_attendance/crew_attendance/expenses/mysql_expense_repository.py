from __future__ import annotations

from typing import Any, Dict, Sequence

from ..common.datetime_utils import to_local_date_string
from ..database.store import RemoteStore
from .model import EXPENSES_TABLE, Expense
from .repository import ExpenseRepository


def row_to_expense(r: Dict[str, Any]) -> Expense:
    day = r["date"]
    return Expense(
        id=str(r["id"]),
        crew_id=str(r["crew_id"]),
        date=day[:10] if isinstance(day, str) else to_local_date_string(day),
        amount=float(r.get("amount") or 0),
        category=r.get("category") or "altro",
        description=r.get("description") or "",
        event_id=str(r["event_id"]) if r.get("event_id") else None,
        warehouse_shift_id=str(r["warehouse_shift_id"]) if r.get("warehouse_shift_id") else None,
        location=r.get("location"),
        notes=r.get("notes"),
        payment_method=r.get("payment_method") or "electronic",
        status=r.get("status") or "pending",
    )


class MySQLExpenseRepository(ExpenseRepository):
    def __init__(self, store: RemoteStore):
        self._store = store

    def list_for_crew(self, crew_id: str) -> Sequence[Expense]:
        rows = self._store.table(EXPENSES_TABLE).select().eq("crew_id", crew_id).order("date", ascending=False).execute()
        return [row_to_expense(r) for r in rows]

    def insert(self, row: Dict[str, Any]) -> Expense:
        return row_to_expense(self._store.table(EXPENSES_TABLE).insert(row))
