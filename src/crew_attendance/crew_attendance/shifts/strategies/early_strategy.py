from __future__ import annotations

from ...core.enums import ShiftTimingState
from ..model import ShiftTiming
from .base import ShiftTimingStrategy, TimingContext, too_early_reason


class EarlyAllowedStrategy(ShiftTimingStrategy):
    """Before start but inside the early check-in window."""

    state = ShiftTimingState.EARLY_ALLOWED

    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        return ShiftTiming(
            state=self.state,
            is_valid=True,
            can_check_in=True,
            can_check_out=False,
            is_expired=False,
            reason=f"Check-in anticipato consentito (turno inizia alle {ctx.start_time})",
        )


class TooEarlyStrategy(ShiftTimingStrategy):
    state = ShiftTimingState.TOO_EARLY

    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        return ShiftTiming(
            state=self.state,
            is_valid=False,
            can_check_in=False,
            can_check_out=False,
            is_expired=False,
            reason=too_early_reason(ctx),
        )
