from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NOTIFICATIONS_TABLE = "notifications"


@dataclass(frozen=True)
class Notification:
    id: str
    crew_id: str
    type: str
    title: str
    message: str
    status: str = "unread"
    action_url: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_read(self) -> bool:
        return self.status == "read"

    @property
    def target_id(self) -> Optional[str]:
        """Warehouse or event id carried as the last segment of the action URL."""
        if not self.action_url:
            return None
        return self.action_url.rstrip("/").rsplit("/", 1)[-1] or None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "is_read": self.is_read,
            "action_url": self.action_url,
            "target_id": self.target_id,
            "created_at": self.created_at,
        }
