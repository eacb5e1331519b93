"""Create the configured database and apply ``database/schema.sql``.

Usage: ``APP_ENV=production python scripts/init_db.py``
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

import mysql.connector

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "crew_attendance"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from crew_attendance.core.exceptions import ConnectivityError
from crew_attendance.database.bootstrap import apply_schema, list_tables
from crew_attendance.database.connection import DBConfig

logger = logging.getLogger("init_db")

SCHEMA_PATH = REPO_ROOT / "database" / "schema.sql"


def main() -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_mapping(db_config).describe()

    try:
        applied = apply_schema(db_config, schema_path=SCHEMA_PATH)
        tables = list_tables(db_config)
    except (ConnectivityError, mysql.connector.Error) as e:
        logger.error("Schema not applied to %s: %s", target, e)
        return 1

    logger.info("%s ready: %d statements, %d tables and views", target, applied, len(tables))
    return 0


if __name__ == "__main__":
    sys.exit(main())
