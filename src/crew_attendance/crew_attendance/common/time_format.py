"""Hour/minute formatting and worked-time arithmetic.

Durations are always shown as hours and minutes, never as decimals.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from ..core.constants import EXPECTED_SHIFT_MINUTES, OVERTIME_STEP_MINUTES
from .datetime_utils import hhmm_to_minutes


def minutes_to_hours_minutes(total_minutes: int) -> Tuple[int, int]:
    return total_minutes // 60, total_minutes % 60


def format_minutes_as_time(total_minutes: int) -> str:
    """480 -> '8h 0min'."""
    hours, minutes = minutes_to_hours_minutes(total_minutes)
    return f"{hours}h {minutes}min"


def format_minutes_as_short_time(total_minutes: int) -> str:
    """570 -> '9:30'."""
    hours, minutes = minutes_to_hours_minutes(total_minutes)
    return f"{hours}:{minutes:02d}"


def format_minutes_compact(total_minutes: int) -> str:
    """130 -> '2h 10min', 120 -> '2h', 30 -> '30min', 0 -> '0min'."""
    hours, minutes = minutes_to_hours_minutes(total_minutes)
    if hours == 0:
        return f"{minutes}min"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}min"


def span_minutes(start: str, end: str, *, wrap: bool = True) -> int:
    """Minutes from start to end (HH:MM). With wrap, a negative span crosses midnight."""
    minutes = hhmm_to_minutes(end) - hhmm_to_minutes(start)
    if wrap and minutes < 0:
        minutes += 24 * 60
    return minutes


def break_minutes(pairs: Iterable[Tuple[Optional[str], Optional[str]]]) -> int:
    """Sum of complete, positive (start, end) break pairs."""
    total = 0
    for start, end in pairs:
        if not start or not end:
            continue
        duration = hhmm_to_minutes(end) - hhmm_to_minutes(start)
        if duration > 0:
            total += duration
    return total


def worked_minutes(check_in: str, check_out: str, breaks: Iterable[Tuple[Optional[str], Optional[str]]] = ()) -> int:
    """(out - in, +24h if negative) - sum(break durations). May be <= 0; callers validate."""
    return span_minutes(check_in, check_out) - break_minutes(breaks)


def requestable_overtime_minutes(excess_minutes: int) -> int:
    """Floor to the 30-minute step: 14 -> 0, 35 -> 30, 130 -> 120."""
    if excess_minutes <= 0:
        return 0
    return (excess_minutes // OVERTIME_STEP_MINUTES) * OVERTIME_STEP_MINUTES


def calculate_extra_shift_benefit(
    actual_worked_minutes: int,
    hourly_rate: float,
    expected_minutes: int = EXPECTED_SHIFT_MINUTES,
) -> float:
    """(worked - expected) / 60 * rate, only when positive, rounded to cents."""
    extra = actual_worked_minutes - expected_minutes
    if extra <= 0:
        return 0.0
    return round(extra / 60 * hourly_rate, 2)


def extra_shift_benefit_details(
    actual_worked_minutes: int,
    hourly_rate: float,
    expected_minutes: int = EXPECTED_SHIFT_MINUTES,
) -> dict:
    extra = actual_worked_minutes - expected_minutes
    return {
        "actual_worked_minutes": actual_worked_minutes,
        "actual_worked_formatted": format_minutes_as_time(actual_worked_minutes),
        "expected_minutes": expected_minutes,
        "expected_formatted": format_minutes_as_time(expected_minutes),
        "extra_minutes": max(0, extra),
        "extra_formatted": format_minutes_as_time(extra) if extra > 0 else "0h 0min",
        "hourly_rate": hourly_rate,
        "benefit": calculate_extra_shift_benefit(actual_worked_minutes, hourly_rate, expected_minutes),
        "has_benefit": extra > 0,
    }
