from __future__ import annotations

from typing import Sequence

from ..database.store import RemoteStore
from .model import NOTIFICATIONS_TABLE, Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    """Reads go to the table; state changes go through stored procedures."""

    def __init__(self, store: RemoteStore):
        self._store = store

    def list_for_crew(self, crew_id: str) -> Sequence[Notification]:
        rows = (
            self._store.table(NOTIFICATIONS_TABLE)
            .select()
            .eq("crew_id", crew_id)
            .neq("status", "deleted")
            .order("created_at", ascending=False)
            .execute()
        )
        out = []
        for r in rows:
            created = r.get("created_at")
            out.append(
                Notification(
                    id=str(r["id"]),
                    crew_id=str(r["crew_id"]),
                    type=r.get("type") or "event",
                    title=r.get("title") or "",
                    message=r.get("message") or "",
                    status=r.get("status") or "unread",
                    action_url=r.get("action_url"),
                    created_at=created.isoformat() if hasattr(created, "isoformat") else created,
                )
            )
        return out

    def mark_read(self, notification_id: str, crew_id: str) -> None:
        self._store.rpc("mark_notification_read", notification_id, crew_id)

    def delete(self, notification_id: str, crew_id: str) -> None:
        self._store.rpc("delete_notification", notification_id, crew_id)
