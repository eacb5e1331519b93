from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.datetime_utils import set_local_timezone
from .container import build_container
from .crew.controller import register as register_crew
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .expenses.controller import register as register_expenses
from .notifications.controller import register as register_notifications
from .offline.controller import register as register_offline
from .overtime.controller import register as register_overtime
from .reports.controller import register as register_reports
from .timesheets.controller import register as register_timesheets

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    set_local_timezone(getattr(settings, "LOCAL_TIMEZONE", "Europe/Rome"))

    logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (%d tables and views)", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        offline_storage_path=getattr(settings, "OFFLINE_STORAGE_PATH", "instance/offline_queue.json"),
        geocoder_url=getattr(settings, "GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse"),
        geocoder_user_agent=getattr(settings, "GEOCODER_USER_AGENT", "CrewManager-Mobile/1.0"),
        auto_checkout_interval=float(getattr(settings, "AUTO_CHECKOUT_INTERVAL_SECONDS", 60)),
    )
    app.extensions["crew_attendance"] = container

    register_crew(app, container)
    register_attendance(app, container)
    register_timesheets(app, container)
    register_reports(app, container)
    register_overtime(app, container)
    register_notifications(app, container)
    register_expenses(app, container)
    register_offline(app, container)

    @app.errorhandler(500)
    def internal_error(_error):
        return jsonify({"success": False, "message": "Errore di sistema, riprova"}), 500

    if bool(getattr(settings, "AUTO_CHECKOUT_ENABLED", True)):
        container.auto_checkout_task.start()

    return app
