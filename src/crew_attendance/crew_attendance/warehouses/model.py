from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Warehouse:
    id: str
    name: str
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    backup_code: Optional[str]
    qr_code_value: Optional[str] = None
    company_id: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
