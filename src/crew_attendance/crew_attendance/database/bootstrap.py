"""Schema installation for ``database/schema.sql``.

The file is written for the ``mysql`` client: ``--`` comments, optional
``CREATE DATABASE`` / ``USE`` lines and ``DELIMITER`` switches for multi-line
procedure bodies. The target database always comes from the settings.
"""

from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Union

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

_DATABASE_LINE = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)
_COMMENT_LINE = re.compile(r"^\s*--")
_DELIMITER_LINE = re.compile(r"^\s*DELIMITER\s+(\S+)\s*$", re.IGNORECASE)


def prepare_schema(sql: str) -> str:
    """Drop comment lines and the lines that pick a database."""
    kept = [line for line in sql.splitlines() if not _DATABASE_LINE.match(line) and not _COMMENT_LINE.match(line)]
    return "\n".join(kept)


def _split_block(block: str, delimiter: str) -> Iterator[str]:
    buf: List[str] = []
    quote: Optional[str] = None
    i = 0
    while i < len(block):
        ch = block[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(block):
                buf.append(block[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            buf.append(ch)
        elif block.startswith(delimiter, i):
            stmt = "".join(buf).strip()
            if stmt:
                yield stmt
            buf = []
            i += len(delimiter)
            continue
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def split_statements(sql: str) -> Iterator[str]:
    """Statements of a script, honouring quotes and ``DELIMITER`` switches."""
    delimiter = ";"
    block: List[str] = []
    for line in sql.splitlines():
        switch = _DELIMITER_LINE.match(line)
        if switch is None:
            block.append(line)
            continue
        yield from _split_block("\n".join(block), delimiter)
        block = []
        delimiter = switch.group(1)
    yield from _split_block("\n".join(block), delimiter)


def ensure_database_exists(config: DBConfig) -> None:
    with closing(mysql.connector.connect(**config.connect_kwargs(with_database=False))) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: Mapping, *, schema_path: Union[str, Path]) -> int:
    """Create the database if needed and run every schema statement. Returns the statement count."""
    config = DBConfig.from_mapping(db_config)
    ensure_database_exists(config)

    statements = list(split_statements(prepare_schema(Path(schema_path).read_text(encoding="utf-8"))))
    with closing(mysql.connector.connect(**config.connect_kwargs())) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("Applied %d schema statements to %s", len(statements), config.describe())
    return len(statements)


def list_tables(db_config: Mapping) -> List[str]:
    """Tables and views of the configured database."""
    config = DBConfig.from_mapping(db_config)
    with closing(mysql.connector.connect(**config.connect_kwargs())) as conn:
        cur = conn.cursor()
        cur.execute("SHOW FULL TABLES")
        return [row[0] for row in cur.fetchall()]
