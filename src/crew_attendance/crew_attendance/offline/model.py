from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from ..core.enums import MutationKind


@dataclass(frozen=True)
class QueuedMutation:
    """A remote write captured while offline, replayed later."""

    id: str
    kind: MutationKind
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.kind.value, "data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, raw: dict) -> "QueuedMutation":
        return cls(
            id=str(raw["id"]),
            kind=MutationKind(raw["type"]),
            data=dict(raw.get("data") or {}),
            timestamp=str(raw.get("timestamp") or ""),
        )
