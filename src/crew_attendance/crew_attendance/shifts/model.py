from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ShiftTimingState


@dataclass(frozen=True)
class WarehouseShift:
    """One assigned warehouse shift for one crew member on one day.

    Times come from the assignment and fall back to the shift template.
    """

    shift_id: str
    crew_id: str
    warehouse_id: Optional[str]
    warehouse_name: str
    shift_name: str
    shift_date: str
    start_time: str
    end_time: str
    has_lunch_break: bool = True
    warehouse_address: Optional[str] = None


@dataclass(frozen=True)
class ShiftTiming:
    state: ShiftTimingState
    is_valid: bool
    can_check_in: bool
    can_check_out: bool
    is_expired: bool
    reason: str
    hours_late: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "is_valid": self.is_valid,
            "can_check_in": self.can_check_in,
            "can_check_out": self.can_check_out,
            "is_expired": self.is_expired,
            "reason": self.reason,
            "hours_late": self.hours_late,
        }
