from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Warehouse


class WarehouseRepository(Protocol):
    def list_all(self) -> Sequence[Warehouse]:
        raise NotImplementedError

    def get_by_id(self, warehouse_id: str) -> Optional[Warehouse]:
        raise NotImplementedError
