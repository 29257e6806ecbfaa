from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .reports.controller import register as register_reports
from .timetable.controller import register as register_timetable

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(app.config["DEBUG"])
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module, db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    container = build_container(
        db_config=db_config,
        edit_window_days=int(getattr(settings, "EDIT_WINDOW_DAYS", 2)),
        auto_mark_interval_minutes=int(getattr(settings, "AUTO_MARK_INTERVAL_MINUTES", 5)),
        lock_sweep_hour_utc=int(getattr(settings, "LOCK_SWEEP_HOUR_UTC", 0)),
        low_attendance_threshold=float(getattr(settings, "LOW_ATTENDANCE_THRESHOLD", 75.0)),
    )
    app.extensions["attendance_tracker"] = container

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(container.conn, schema_path=schema_path)
        logger.info("schema ready (tables=%s)", len(list_tables(container.conn)))

    register_attendance(app, container)
    register_timetable(app, container)
    register_reports(app, container)

    if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
        container.sweep_scheduler.start()
        atexit.register(container.sweep_scheduler.stop)

    return app
