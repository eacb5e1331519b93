from __future__ import annotations

from ...core.enums import ShiftTimingState
from ..model import ShiftTiming
from .base import ShiftTimingStrategy, TimingContext


class ExpiredStrategy(ShiftTimingStrategy):
    """Scheduled end already passed today: neither check-in nor check-out."""

    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        hours_late = (ctx.now_minutes - ctx.end_minutes) / 60
        return ShiftTiming(
            state=ShiftTimingState.EXPIRED,
            is_valid=False,
            can_check_in=False,
            can_check_out=False,
            is_expired=True,
            reason=f"Turno terminato alle {ctx.end_time} ({hours_late:.1f} ore fa)",
            hours_late=hours_late,
        )
