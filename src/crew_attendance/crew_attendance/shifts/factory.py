from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import EVENING_SHIFT_START_MINUTES, NIGHT_BAND_END_MINUTES
from .strategies.active_strategy import ActiveStrategy
from .strategies.base import ShiftTimingStrategy, TimingContext
from .strategies.early_strategy import EarlyAllowedStrategy, TooEarlyStrategy
from .strategies.expired_strategy import ExpiredStrategy
from .strategies.night_strategy import NightEarlyAllowedStrategy, NightTooEarlyStrategy
from .strategies.wrong_day_strategy import WrongDayFutureStrategy, WrongDayPastStrategy


@dataclass
class ShiftTimingStrategyFactory:
    """Factory Pattern: choose the strategy that classifies "now" for a shift."""

    def for_moment(self, ctx: TimingContext) -> ShiftTimingStrategy:
        if ctx.today != ctx.shift_date:
            return WrongDayPastStrategy() if ctx.today > ctx.shift_date else WrongDayFutureStrategy()

        # 00:00-05:00 with an evening start: we are before tonight's shift, not after it.
        if ctx.now_minutes < NIGHT_BAND_END_MINUTES and ctx.start_minutes >= EVENING_SHIFT_START_MINUTES:
            if ctx.minutes_early <= ctx.grace_minutes:
                return NightEarlyAllowedStrategy()
            return NightTooEarlyStrategy()

        if ctx.now_minutes < ctx.start_minutes:
            if ctx.minutes_early <= ctx.grace_minutes:
                return EarlyAllowedStrategy()
            return TooEarlyStrategy()

        if ctx.now_minutes >= ctx.end_minutes:
            return ExpiredStrategy()
        return ActiveStrategy()
