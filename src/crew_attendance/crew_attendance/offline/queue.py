"""Durable queue of remote writes made while the store was unreachable.

The queue is persisted to a single storage slot after every change. A replay
walks the items in order, keeps only the ones that failed and never stops on
the first error.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from ..core.constants import OFFLINE_STORAGE_KEY
from ..core.enums import MutationKind
from .model import QueuedMutation
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)


class MutationReplayer(Protocol):
    def apply(self, item: QueuedMutation) -> None:
        raise NotImplementedError


class OfflineQueue:
    def __init__(
        self,
        storage: KeyValueStorage,
        replayer: MutationReplayer,
        *,
        is_online: bool = True,
        key: str = OFFLINE_STORAGE_KEY,
    ):
        self._storage = storage
        self._replayer = replayer
        self._key = key
        self._lock = threading.Lock()
        self._syncing = False
        self.is_online = is_online
        self._pending: List[QueuedMutation] = self._load()

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def pending(self) -> List[QueuedMutation]:
        return list(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _load(self) -> List[QueuedMutation]:
        raw = self._storage.get_item(self._key)
        if not raw:
            return []
        try:
            return [QueuedMutation.from_dict(r) for r in json.loads(raw)]
        except (ValueError, KeyError, TypeError):
            logger.exception("Unreadable offline queue in slot %s, ignoring it", self._key)
            return []

    def _save(self) -> None:
        self._storage.set_item(self._key, json.dumps([m.to_dict() for m in self._pending]))

    def enqueue(self, kind: MutationKind | str, data: Dict[str, Any]) -> QueuedMutation:
        item = QueuedMutation(
            id=str(uuid.uuid4()),
            kind=MutationKind(kind),
            data=dict(data),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._pending.append(item)
            self._save()
        logger.info("Queued offline %s mutation %s", item.kind.value, item.id)
        if self.is_online:
            self.replay()
        return item

    def replay(self) -> int:
        """Try every pending item once. Returns how many were applied."""
        with self._lock:
            if self._syncing or not self._pending:
                return 0
            self._syncing = True
            snapshot = list(self._pending)

        done: set[str] = set()
        try:
            for item in snapshot:
                try:
                    self._replayer.apply(item)
                    done.add(item.id)
                except Exception:
                    logger.exception("Offline replay failed for %s %s", item.kind.value, item.id)
        finally:
            with self._lock:
                # Items enqueued during the replay are kept as well.
                self._pending = [m for m in self._pending if m.id not in done]
                self._save()
                self._syncing = False

        if done:
            logger.info("Offline replay applied %d of %d mutations", len(done), len(snapshot))
        return len(done)

    def set_online(self, online: bool) -> None:
        was_online = self.is_online
        self.is_online = bool(online)
        if self.is_online and not was_online:
            self.replay()

    def clear(self) -> None:
        with self._lock:
            self._storage.remove_item(self._key)
            self._pending = []
