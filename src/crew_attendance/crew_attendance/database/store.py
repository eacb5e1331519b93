"""Fluent access to the remote tables.

Callers never write SQL: they compose filters on a ``TableQuery`` and finish
with one terminal call (``execute``, ``maybe_single``, ``insert``, ``update``,
``upsert`` or ``delete``). Each terminal call is one statement on a
short-lived connection.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Dict, List, Optional, Sequence

from ..core.exceptions import ValidationError
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone, to_db_value

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _ident(name: str) -> str:
    if not _IDENT.match(name or ""):
        raise ValidationError(f"Identificatore non valido: {name!r}")
    return f"`{name}`"


class TableQuery:
    def __init__(self, conn_factory: DatabaseConnection, table: str):
        self._conn_factory = conn_factory
        self._table = _ident(table)
        self._columns = "*"
        self._clauses: list[str] = []
        self._params: list[Any] = []
        self._order: list[str] = []
        self._limit: Optional[int] = None

    # -- composition ------------------------------------------------------

    def select(self, columns: str = "*") -> "TableQuery":
        if columns.strip() != "*":
            columns = ", ".join(_ident(c.strip()) for c in columns.split(","))
        self._columns = columns
        return self

    def _where(self, column: str, op: str, value: Any) -> "TableQuery":
        self._clauses.append(f"{_ident(column)} {op} %s")
        self._params.append(to_db_value(value))
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        return self._where(column, "=", value)

    def neq(self, column: str, value: Any) -> "TableQuery":
        return self._where(column, "<>", value)

    def gte(self, column: str, value: Any) -> "TableQuery":
        return self._where(column, ">=", value)

    def lte(self, column: str, value: Any) -> "TableQuery":
        return self._where(column, "<=", value)

    def is_null(self, column: str) -> "TableQuery":
        self._clauses.append(f"{_ident(column)} IS NULL")
        return self

    def not_null(self, column: str) -> "TableQuery":
        self._clauses.append(f"{_ident(column)} IS NOT NULL")
        return self

    def in_(self, column: str, values: Sequence[Any]) -> "TableQuery":
        values = list(values)
        if not values:
            self._clauses.append("1=0")
            return self
        placeholders = ",".join(["%s"] * len(values))
        self._clauses.append(f"{_ident(column)} IN ({placeholders})")
        self._params.extend(to_db_value(v) for v in values)
        return self

    def order(self, column: str, *, ascending: bool = True) -> "TableQuery":
        self._order.append(f"{_ident(column)} {'ASC' if ascending else 'DESC'}")
        return self

    def limit(self, n: int) -> "TableQuery":
        self._limit = int(n)
        return self

    # -- terminal calls ---------------------------------------------------

    def _where_sql(self) -> str:
        return f" WHERE {' AND '.join(self._clauses)}" if self._clauses else ""

    def execute(self) -> List[Dict[str, Any]]:
        sql = f"SELECT {self._columns} FROM {self._table}{self._where_sql()}"
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        if self._limit is not None:
            sql += f" LIMIT {self._limit}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(self._params))
            return fetchall(cur)

    def maybe_single(self) -> Optional[Dict[str, Any]]:
        self._limit = 1
        sql = f"SELECT {self._columns} FROM {self._table}{self._where_sql()}"
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        sql += " LIMIT 1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(self._params))
            return fetchone(cur)

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        columns = ", ".join(_ident(c) for c in row)
        placeholders = ", ".join(["%s"] * len(row))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders})",
                tuple(to_db_value(v) for v in row.values()),
            )
        return row

    def update(self, values: Dict[str, Any]) -> int:
        if not self._clauses:
            raise ValidationError("Aggiornamento senza filtro non consentito")
        assignments = ", ".join(f"{_ident(c)}=%s" for c in values)
        params = [to_db_value(v) for v in values.values()] + self._params
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE {self._table} SET {assignments}{self._where_sql()}", tuple(params))
            return int(cur.rowcount)

    def upsert(self, row: Dict[str, Any], *, on: str = "id") -> Dict[str, Any]:
        row = dict(row)
        if on == "id":
            row.setdefault("id", str(uuid.uuid4()))
        columns = ", ".join(_ident(c) for c in row)
        placeholders = ", ".join(["%s"] * len(row))
        updates = ", ".join(f"{_ident(c)}=VALUES({_ident(c)})" for c in row if c != on)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders}) ON DUPLICATE KEY UPDATE {updates}",
                tuple(to_db_value(v) for v in row.values()),
            )
        return row

    def delete(self) -> int:
        if not self._clauses:
            raise ValidationError("Eliminazione senza filtro non consentita")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {self._table}{self._where_sql()}", tuple(self._params))
            return int(cur.rowcount)


class RemoteStore:
    """Entry point: ``store.table("warehouse_checkins").select().eq(...)``."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def table(self, name: str) -> TableQuery:
        return TableQuery(self._conn_factory, name)

    def rpc(self, name: str, *args: Any) -> List[Dict[str, Any]]:
        """Call a stored procedure and collect any result rows."""
        _ident(name)
        rows: List[Dict[str, Any]] = []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.callproc(name, tuple(to_db_value(a) for a in args))
            for result in cur.stored_results():
                columns = [c[0] for c in result.description or []]
                rows.extend(dict(zip(columns, r)) for r in result.fetchall())
        return rows
