from __future__ import annotations

import json
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.exceptions import ConnectivityError
from .connection import UNREACHABLE_ERRORS, DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except UNREACHABLE_ERRORS as e:
        # lost mid-statement
        raise ConnectivityError(f"Connessione al database interrotta: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db_value(value: Any) -> Any:
    """JSON-encode dict/list values for JSON columns."""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, Enum):
        return value.value
    return value


def load_json(value: Any) -> Any:
    """Decode a JSON column that the connector returned as str/bytes."""
    if value is None or isinstance(value, (dict, list)):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return None
