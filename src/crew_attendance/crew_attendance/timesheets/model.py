from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.constants import DEFAULT_DAILY_RATE, DEFAULT_HOURLY_RATE, DEFAULT_RETENTION_PERCENTAGE
from ..core.enums import PaymentStatus, TimesheetStatus, TrackingType

TIMESHEET_TABLE = "timesheet_entries"


@dataclass(frozen=True)
class CrewEvent:
    """An event the crew member is assigned to (with the agreed rate)."""

    id: str
    title: str
    start_date: str
    end_date: Optional[str] = None
    location: Optional[str] = None
    is_travel: bool = False
    rate: Optional[float] = None


@dataclass(frozen=True)
class TimesheetEntry:
    id: str
    crew_id: str
    event_id: Optional[str]
    date: str
    start_time: Optional[str]
    end_time: Optional[str] = None
    end_date: Optional[str] = None
    break_minutes: int = 0
    tracking_type: TrackingType = TrackingType.HOURS
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None
    total_days: Optional[float] = None
    retention_percentage: float = 0.0
    total_hours: float = 0.0
    gross_amount: float = 0.0
    net_amount: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: TimesheetStatus = TimesheetStatus.DRAFT
    location: Optional[Dict[str, Any]] = None
    company_meal: bool = False
    meal_voucher: bool = False
    notes: Optional[str] = None
    event_title: Optional[str] = None

    original_start_time: Optional[str] = None
    original_end_time: Optional[str] = None
    rectified_start_time: Optional[str] = None
    rectified_end_time: Optional[str] = None
    is_rectified: bool = False
    rectification_notes: Optional[str] = None
    rectified_by: Optional[str] = None
    rectified_at: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == TimesheetStatus.DRAFT and self.end_time is None


def calculate_amounts(
    *,
    tracking_type: TrackingType,
    total_hours: float,
    total_days: Optional[float],
    hourly_rate: Optional[float],
    daily_rate: Optional[float],
    retention_percentage: Optional[float],
) -> Tuple[float, float]:
    """(gross, net). Hours: hours x hourly rate; days: days x daily rate; net after retention."""
    if tracking_type == TrackingType.DAYS:
        gross = float(total_days or 0) * float(daily_rate if daily_rate is not None else DEFAULT_DAILY_RATE)
    else:
        gross = float(total_hours or 0) * float(hourly_rate if hourly_rate is not None else DEFAULT_HOURLY_RATE)
    retention = float(retention_percentage if retention_percentage is not None else DEFAULT_RETENTION_PERCENTAGE)
    net = gross * (1 - retention / 100)
    return round(gross, 2), round(net, 2)
