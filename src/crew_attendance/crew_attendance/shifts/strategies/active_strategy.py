from __future__ import annotations

from ...core.enums import ShiftTimingState
from ..model import ShiftTiming
from .base import ShiftTimingStrategy, TimingContext


class ActiveStrategy(ShiftTimingStrategy):
    def evaluate(self, ctx: TimingContext) -> ShiftTiming:
        return ShiftTiming(
            state=ShiftTimingState.ACTIVE,
            is_valid=True,
            can_check_in=True,
            can_check_out=True,
            is_expired=False,
            reason=f"Turno attivo: {ctx.start_time} - {ctx.end_time}",
        )
