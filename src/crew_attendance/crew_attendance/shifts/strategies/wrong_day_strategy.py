from __future__ import annotations

from ...common.datetime_utils import format_display_date
from ...core.enums import ShiftTimingState
from ..model import ShiftTiming
from .base import ShiftTimingStrategy, TimingContext


class WrongDayPastStrategy(ShiftTimingStrategy):
    """Shift belongs to a day that is already over."""

    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        return ShiftTiming(
            state=ShiftTimingState.WRONG_DAY_PAST,
            is_valid=False,
            can_check_in=False,
            can_check_out=False,
            is_expired=True,
            reason=f"Turno del {format_display_date(ctx.shift_date)} già passato",
        )


class WrongDayFutureStrategy(ShiftTimingStrategy):
    """Shift is scheduled for a later day."""

    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        return ShiftTiming(
            state=ShiftTimingState.WRONG_DAY_FUTURE,
            is_valid=False,
            can_check_in=False,
            can_check_out=False,
            is_expired=False,
            reason=f"Turno programmato per {format_display_date(ctx.shift_date)}",
        )
