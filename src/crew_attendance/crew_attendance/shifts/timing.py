"""Classify the current moment against a shift's scheduled window.

Pure arithmetic on local time-of-day: no I/O.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import hhmm_to_minutes, normalize_time, now_local, to_local, to_local_date_string
from ..core.constants import DEFAULT_SHIFT_END, DEFAULT_SHIFT_START, EARLY_CHECKIN_MINUTES
from .factory import ShiftTimingStrategyFactory
from .model import ShiftTiming, WarehouseShift
from .strategies.base import TimingContext

_default_factory = ShiftTimingStrategyFactory()


def build_context(shift: WarehouseShift, now: datetime, *, grace_minutes: int = EARLY_CHECKIN_MINUTES) -> TimingContext:
    local = to_local(now)
    start = normalize_time(shift.start_time, DEFAULT_SHIFT_START)
    end = normalize_time(shift.end_time, DEFAULT_SHIFT_END)
    start_minutes = hhmm_to_minutes(start)
    end_minutes = hhmm_to_minutes(end)
    if end_minutes <= start_minutes:
        # Overnight shift (e.g. 22:00-06:00): the end belongs to the next day.
        end_minutes += 24 * 60
    return TimingContext(
        today=to_local_date_string(local),
        shift_date=shift.shift_date[:10],
        start_time=start,
        end_time=end,
        now_minutes=local.hour * 60 + local.minute,
        start_minutes=start_minutes,
        end_minutes=end_minutes,
        grace_minutes=grace_minutes,
    )


def validate_shift_timing(
    shift: WarehouseShift,
    now: Optional[datetime] = None,
    *,
    factory: Optional[ShiftTimingStrategyFactory] = None,
    grace_minutes: int = EARLY_CHECKIN_MINUTES,
) -> ShiftTiming:
    ctx = build_context(shift, now or now_local(), grace_minutes=grace_minutes)
    strategy = (factory or _default_factory).for_moment(ctx)
    return strategy.evaluate(ctx)
