from __future__ import annotations

import logging
from typing import Any, Dict

from ..core.enums import CheckInStatus, MutationKind
from ..database.store import RemoteStore
from .model import QueuedMutation

logger = logging.getLogger(__name__)


class RemoteReplayer:
    """Map each queued mutation kind to its remote write. Raises on failure."""

    def __init__(self, store: RemoteStore):
        self._store = store

    def apply(self, item: QueuedMutation) -> None:
        data = item.data
        if item.kind == MutationKind.CHECKIN:
            self._insert_checkin(data)
        elif item.kind == MutationKind.CHECKOUT:
            self._store.table("warehouse_checkins").eq("id", data["id"]).update(data["updates"])
        elif item.kind == MutationKind.EXPENSE:
            self._store.table("expenses").insert(data)
        elif item.kind == MutationKind.TIMESHEET:
            if data.get("id"):
                self._store.table("timesheet_entries").eq("id", data["id"]).update(data["updates"])
            else:
                self._store.table("timesheet_entries").insert(data)
        else:
            raise ValueError(f"Unsupported mutation kind: {item.kind}")

    def _insert_checkin(self, data: Dict[str, Any]) -> None:
        # One active record per crew member and shift, even if they checked in again online.
        active = (
            self._store.table("warehouse_checkins")
            .select("id")
            .eq("crew_id", data["crew_id"])
            .eq("shift_id", data["shift_id"])
            .eq("date", data["date"])
            .eq("status", CheckInStatus.ACTIVE.value)
            .maybe_single()
        )
        if active:
            logger.warning("Queued check-in %s dropped: record %s is already active", data.get("id"), active["id"])
            return
        self._store.table("warehouse_checkins").insert(data)
