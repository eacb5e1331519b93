from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import SessionType


@dataclass(frozen=True)
class Session:
    """Client-side projection of an open attendance record or event entry."""

    id: str
    type: SessionType
    check_in_time: str
    scheduled_end_time: str
    shift_name: str
    warehouse_id: Optional[str] = None
    event_id: Optional[str] = None
    shift_start_time: Optional[str] = None
    shift_end_time: Optional[str] = None
    has_lunch_break: bool = False
    has_company_meal: bool = False
    has_meal_voucher: bool = False
    break_minutes: int = 0
    table_name: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "check_in_time": self.check_in_time,
            "scheduled_end_time": self.scheduled_end_time,
            "shift_name": self.shift_name,
            "warehouse_id": self.warehouse_id,
            "event_id": self.event_id,
            "shift_start_time": self.shift_start_time,
            "shift_end_time": self.shift_end_time,
            "has_lunch_break": self.has_lunch_break,
            "has_company_meal": self.has_company_meal,
            "has_meal_voucher": self.has_meal_voucher,
            "break_minutes": self.break_minutes,
            "table_name": self.table_name,
            "is_active": self.is_active,
        }
