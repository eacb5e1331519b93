from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...common.datetime_utils import minutes_to_hhmm
from ...core.constants import EARLY_CHECKIN_MINUTES
from ..model import ShiftTiming


@dataclass(frozen=True)
class TimingContext:
    """Everything a strategy needs, already reduced to local minutes-of-day."""

    today: str
    shift_date: str
    start_time: str
    end_time: str
    now_minutes: int
    start_minutes: int
    end_minutes: int
    grace_minutes: int = EARLY_CHECKIN_MINUTES

    @property
    def minutes_early(self) -> int:
        return self.start_minutes - self.now_minutes


def earliest_check_in_time(start_minutes: int, grace_minutes: int = EARLY_CHECKIN_MINUTES) -> str:
    total = start_minutes - grace_minutes
    if total < 0:
        return f"{minutes_to_hhmm(total + 24 * 60)} (giorno prima)"
    return minutes_to_hhmm(total)


def too_early_reason(ctx: TimingContext) -> str:
    early = ctx.minutes_early
    return (
        f"Turno inizia alle {ctx.start_time} (tra {early // 60} ore e {early % 60} minuti). "
        f"Check-in disponibile dalle {earliest_check_in_time(ctx.start_minutes, ctx.grace_minutes)}."
    )


class ShiftTimingStrategy(ABC):
    """Strategy Pattern: one class per timing state."""

    @abstractmethod
    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        raise NotImplementedError
