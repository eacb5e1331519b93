from __future__ import annotations

import logging
from typing import List

from ..core.exceptions import NotFoundError
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def list(self, crew_id: str) -> List[Notification]:
        return list(self._notifications.list_for_crew(crew_id))

    def unread_count(self, crew_id: str) -> int:
        return sum(1 for n in self._notifications.list_for_crew(crew_id) if not n.is_read)

    def _require(self, crew_id: str, notification_id: str) -> None:
        if not any(n.id == notification_id for n in self._notifications.list_for_crew(crew_id)):
            raise NotFoundError("Notifica non trovata")

    def mark_read(self, crew_id: str, notification_id: str) -> None:
        self._require(crew_id, notification_id)
        self._notifications.mark_read(notification_id, crew_id)

    def dismiss(self, crew_id: str, notification_id: str) -> None:
        self._require(crew_id, notification_id)
        self._notifications.delete(notification_id, crew_id)
        logger.info("Notification %s dismissed by %s", notification_id, crew_id)
