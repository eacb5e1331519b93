from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import normalize_time, to_local_date_string
from ..core.constants import DEFAULT_SHIFT_END, DEFAULT_SHIFT_START
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import WarehouseShift
from .repository import ShiftRepository

_SELECT = """
    SELECT a.id, a.crew_id, a.shift_date, a.start_time AS a_start, a.end_time AS a_end,
           a.warehouse_name AS a_warehouse_name,
           t.name AS template_name, t.start_time AS t_start, t.end_time AS t_end,
           t.has_lunch_break, t.warehouse_id,
           w.name AS warehouse_name, w.address AS warehouse_address
    FROM crew_shift_assignments a
    LEFT JOIN shift_templates t ON t.id = a.template_id
    LEFT JOIN warehouses w ON w.id = t.warehouse_id
"""


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row_to_shift(r: dict) -> WarehouseShift:
        # Per-day times on the assignment win over the template.
        start = r.get("a_start") or r.get("t_start")
        end = r.get("a_end") or r.get("t_end")
        warehouse_name = r.get("warehouse_name") or r.get("a_warehouse_name") or "Magazzino"
        has_lunch = r.get("has_lunch_break")
        return WarehouseShift(
            shift_id=str(r["id"]),
            crew_id=str(r["crew_id"]),
            warehouse_id=str(r["warehouse_id"]) if r.get("warehouse_id") else None,
            warehouse_name=warehouse_name,
            shift_name=r.get("template_name") or f"Turno {warehouse_name}",
            shift_date=to_local_date_string(r["shift_date"]),
            start_time=normalize_time(start, DEFAULT_SHIFT_START),
            end_time=normalize_time(end, DEFAULT_SHIFT_END),
            has_lunch_break=has_lunch is None or bool(has_lunch),
            warehouse_address=r.get("warehouse_address") or "Indirizzo non disponibile",
        )

    def list_upcoming_for_crew(self, crew_id: str, from_date: str) -> Sequence[WarehouseShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE a.crew_id=%s AND a.shift_date>=%s
                ORDER BY a.shift_date ASC, COALESCE(a.start_time, t.start_time) ASC
                """,
                (crew_id, from_date),
            )
            return [self._row_to_shift(r) for r in fetchall(cur)]

    def get_by_id(self, shift_id: str) -> Optional[WarehouseShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.id=%s", (shift_id,))
            r = fetchone(cur)
            return self._row_to_shift(r) if r else None
