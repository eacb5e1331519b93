from __future__ import annotations

import threading
from typing import List, Optional, Sequence

from .model import Session


class SessionStore:
    """Active sessions of one crew member plus the nominated "current" one."""

    def __init__(self):
        self._lock = threading.RLock()
        self._sessions: List[Session] = []
        self._current: Optional[Session] = None

    @property
    def active_sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions)

    @property
    def current(self) -> Optional[Session]:
        with self._lock:
            return self._current

    def replace_all(self, sessions: Sequence[Session], current: Optional[Session]) -> None:
        with self._lock:
            self._sessions = list(sessions)
            self._current = current

    def put(self, session: Session) -> None:
        with self._lock:
            for i, existing in enumerate(self._sessions):
                if existing.id == session.id:
                    self._sessions[i] = session
                    break
            else:
                self._sessions.append(session)
            self._current = session

    def remove(self, session_id: Optional[str] = None) -> None:
        with self._lock:
            if session_id is None:
                self._current = None
                return
            self._sessions = [s for s in self._sessions if s.id != session_id]
            if self._current is not None and self._current.id == session_id:
                self._current = None

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return next((s for s in self._sessions if s.id == session_id), None)
