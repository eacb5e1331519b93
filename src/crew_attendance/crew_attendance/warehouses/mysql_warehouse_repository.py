from __future__ import annotations

from typing import Optional, Sequence

from ..database.store import RemoteStore
from .model import Warehouse
from .repository import WarehouseRepository


def _float_or_none(value) -> Optional[float]:
    return float(value) if value not in (None, "") else None


class MySQLWarehouseRepository(WarehouseRepository):
    def __init__(self, store: RemoteStore):
        self._store = store

    @staticmethod
    def _row_to_warehouse(r: dict) -> Warehouse:
        return Warehouse(
            id=str(r["id"]),
            name=r.get("name") or "",
            address=r.get("address"),
            latitude=_float_or_none(r.get("latitude")),
            longitude=_float_or_none(r.get("longitude")),
            backup_code=r.get("backup_code"),
            qr_code_value=r.get("qr_code_value"),
            company_id=str(r["company_id"]) if r.get("company_id") else None,
        )

    def list_all(self) -> Sequence[Warehouse]:
        rows = self._store.table("warehouses").select().order("name").execute()
        return [self._row_to_warehouse(r) for r in rows]

    def get_by_id(self, warehouse_id: str) -> Optional[Warehouse]:
        r = self._store.table("warehouses").select().eq("id", warehouse_id).maybe_single()
        return self._row_to_warehouse(r) if r else None
