from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PositionFix:
    """Raw reading from the device."""

    latitude: float
    longitude: float
    accuracy: float


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str
    accuracy: int
    timestamp: datetime

    def to_dict(self, *, forced: Optional[bool] = None) -> dict:
        data = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "accuracy": self.accuracy,
            "timestamp": self.timestamp.isoformat(),
        }
        if forced is not None:
            data["forced"] = forced
        return data
