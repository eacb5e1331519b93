from __future__ import annotations

import threading
from typing import Dict, List, Optional

from ..attendance.repository import AttendanceRepository
from ..offline.queue import OfflineQueue
from ..timesheets.repository import TimesheetRepository
from ..warehouses.repository import WarehouseRepository
from .service import SessionService


class SessionRegistry:
    """One ``SessionService`` per logged-in crew member, created on first use."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        timesheets: TimesheetRepository,
        warehouses: WarehouseRepository,
        *,
        offline: Optional[OfflineQueue] = None,
    ):
        self._attendance = attendance
        self._timesheets = timesheets
        self._warehouses = warehouses
        self._offline = offline
        self._lock = threading.Lock()
        self._services: Dict[str, SessionService] = {}

    def for_crew(self, crew_id: str) -> SessionService:
        with self._lock:
            service = self._services.get(crew_id)
            if service is None:
                service = SessionService(
                    crew_id,
                    self._attendance,
                    self._timesheets,
                    self._warehouses,
                    offline=self._offline,
                )
                self._services[crew_id] = service
            return service

    def all(self) -> List[SessionService]:
        with self._lock:
            return list(self._services.values())

    def discard(self, crew_id: str) -> None:
        """Forget a crew member's sessions (logout) and stop their ticker."""
        with self._lock:
            service = self._services.pop(crew_id, None)
        if service is not None:
            service.ticker.reset()
