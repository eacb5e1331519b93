from __future__ import annotations

from ...core.enums import ShiftTimingState
from .early_strategy import EarlyAllowedStrategy, TooEarlyStrategy


class NightEarlyAllowedStrategy(EarlyAllowedStrategy):
    """After midnight, evening shift starting tonight, inside the window."""

    state = ShiftTimingState.NIGHT_EARLY_ALLOWED


class NightTooEarlyStrategy(TooEarlyStrategy):
    """After midnight, evening shift starting tonight, still too far away."""

    state = ShiftTimingState.NIGHT_TOO_EARLY
