from __future__ import annotations

from typing import Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def list_for_crew(self, crew_id: str) -> Sequence[Notification]:
        """Newest first, deleted ones excluded."""

        raise NotImplementedError

    def mark_read(self, notification_id: str, crew_id: str) -> None:
        raise NotImplementedError

    def delete(self, notification_id: str, crew_id: str) -> None:
        raise NotImplementedError
