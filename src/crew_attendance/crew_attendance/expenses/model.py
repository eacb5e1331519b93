from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

EXPENSES_TABLE = "expenses"


@dataclass(frozen=True)
class Expense:
    """An expense claim tied to an event or a warehouse shift."""

    id: str
    crew_id: str
    date: str
    amount: float
    category: str
    description: str
    event_id: Optional[str] = None
    warehouse_shift_id: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    payment_method: str = "electronic"
    status: str = "pending"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "amount": self.amount,
            "category": self.category,
            "description": self.description,
            "event_id": self.event_id,
            "warehouse_shift_id": self.warehouse_shift_id,
            "location": self.location,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "status": self.status,
        }
