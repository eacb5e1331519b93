from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Dict, Optional

from ..common.datetime_utils import format_elapsed, hhmm_to_minutes, now_local, to_local
from ..common.periodic import PeriodicTask
from .store import SessionStore

ZERO = "00:00:00"


def elapsed_since(check_in_time: str, now: datetime) -> str:
    """HH:MM:SS from today's check-in time to now; a future check-in shows 00:00:00."""
    local = to_local(now)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    seconds = (local - start).total_seconds() - hhmm_to_minutes(check_in_time) * 60
    if seconds < 0:
        return ZERO
    return format_elapsed(int(seconds))


class ElapsedTicker:
    """Republishes elapsed times of active sessions once per second."""

    def __init__(self, store: SessionStore, *, clock: Callable[[], datetime] = now_local, interval: float = 1.0):
        self._store = store
        self._clock = clock
        self._interval = interval
        self._lock = threading.Lock()
        self._task: Optional[PeriodicTask] = None
        self.elapsed_time = ZERO
        self.elapsed_times: Dict[str, str] = {}

    @property
    def is_running(self) -> bool:
        return self._task is not None and self._task.is_running

    def tick(self, now: Optional[datetime] = None) -> None:
        now = now or self._clock()
        sessions = self._store.active_sessions
        current = self._store.current
        if not sessions and current is None:
            self.reset()
            return
        times = {s.id: elapsed_since(s.check_in_time, now) for s in sessions}
        with self._lock:
            self.elapsed_times = times
            self.elapsed_time = elapsed_since(current.check_in_time, now) if current else ZERO

    def start(self) -> None:
        if self.is_running:
            return
        self._task = PeriodicTask(self._interval, self.tick, name="elapsed-ticker")
        self._task.start()

    def reset(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.stop()
        with self._lock:
            self.elapsed_time = ZERO
            self.elapsed_times = {}
