from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..common.time_format import worked_minutes

WAREHOUSE_TABLE = "warehouse_checkins"
EXTRA_TABLE = "extra_shifts_checkins"
ENRICHED_VIEW = "warehouse_checkins_enriched"


@dataclass(frozen=True)
class EffectiveAttendance:
    """Reconciled view of a record: rectified values win over the originals."""

    check_in_time: Optional[str]
    check_out_time: Optional[str]
    lunch_break_start: Optional[str]
    lunch_break_end: Optional[str]
    dinner_break_start: Optional[str]
    dinner_break_end: Optional[str]
    total_hours: float
    is_rectified: bool


@dataclass(frozen=True)
class AttendanceRecord:
    """One warehouse (or extra) shift check-in/out."""

    id: str
    crew_id: str
    date: str
    check_in_time: Optional[str]
    status: str
    table: str = WAREHOUSE_TABLE
    warehouse_id: Optional[str] = None
    warehouse_name: Optional[str] = None
    shift_id: Optional[str] = None
    shift_start_time: Optional[str] = None
    shift_end_time: Optional[str] = None
    check_out_time: Optional[str] = None

    lunch_break_start: Optional[str] = None
    lunch_break_end: Optional[str] = None
    dinner_break_start: Optional[str] = None
    dinner_break_end: Optional[str] = None
    break_minutes: int = 0
    has_taken_break: bool = False
    break_auto_applied: bool = False
    break_registered_late: bool = False

    company_meal: bool = False
    meal_voucher: bool = False
    meal_cost: float = 0.0
    meal_notes: Optional[str] = None

    location: Optional[Dict[str, Any]] = None
    checkout_location: Optional[Dict[str, Any]] = None
    location_alert: bool = False
    distance_from_warehouse: Optional[float] = None
    checkout_location_alert: bool = False
    checkout_distance_from_warehouse: Optional[float] = None
    forced_checkin: bool = False
    gps_error_reason: Optional[str] = None

    total_hours: Optional[float] = None
    net_hours: Optional[float] = None
    notes: Optional[str] = None
    shift_notes: Optional[str] = None
    auto_checkout: bool = False
    overtime_requested: bool = False

    rectified_check_in_time: Optional[str] = None
    rectified_check_out_time: Optional[str] = None
    rectified_lunch_start: Optional[str] = None
    rectified_lunch_end: Optional[str] = None
    rectified_dinner_start: Optional[str] = None
    rectified_dinner_end: Optional[str] = None
    rectified_total_hours: Optional[float] = None
    rectification_note: Optional[str] = None
    rectified_by: Optional[str] = None
    rectified_at: Optional[str] = None

    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None and self.status in ("active", "checked_in")

    @property
    def is_rectified(self) -> bool:
        return self.rectified_at is not None

    @property
    def lunch_in_progress(self) -> bool:
        return bool(self.lunch_break_start) and not self.lunch_break_end

    @property
    def lunch_done(self) -> bool:
        return bool(self.lunch_break_start) and bool(self.lunch_break_end)

    def effective(self) -> EffectiveAttendance:
        check_in = self.rectified_check_in_time or self.check_in_time
        check_out = self.rectified_check_out_time or self.check_out_time
        lunch = (self.rectified_lunch_start or self.lunch_break_start, self.rectified_lunch_end or self.lunch_break_end)
        dinner = (self.rectified_dinner_start or self.dinner_break_start, self.rectified_dinner_end or self.dinner_break_end)

        if self.rectified_total_hours is not None:
            total = float(self.rectified_total_hours)
        elif self.net_hours is not None:
            total = float(self.net_hours)
        elif check_in and check_out:
            recorded = [p for p in (lunch, dinner) if p[0] and p[1]]
            minutes = worked_minutes(check_in, check_out, recorded)
            if not recorded:
                minutes -= self.break_minutes
            total = round(max(minutes, 0) / 60, 2)
        else:
            total = 0.0

        return EffectiveAttendance(
            check_in_time=check_in,
            check_out_time=check_out,
            lunch_break_start=lunch[0],
            lunch_break_end=lunch[1],
            dinner_break_start=dinner[0],
            dinner_break_end=dinner[1],
            total_hours=total,
            is_rectified=self.is_rectified,
        )
