from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .coaches.controller import register as register_coaches
from .common.datetime_utils import now_local
from .container import Container, build_container, build_memory_container
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, ensure_demo_data, list_tables
from .photos.controller import register as register_photos

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _build_from_settings(settings) -> Container:
    backend = str(getattr(settings, "DATA_BACKEND", "mysql")).lower()
    attendance_config = dict(getattr(settings, "ATTENDANCE", {}))
    photo_config = dict(getattr(settings, "PHOTO_STORAGE", {}))

    if backend == "memory":
        return build_memory_container(
            today=now_local().date(),
            seed=bool(getattr(settings, "AUTO_SEED_DB", True)),
            attendance_config=attendance_config,
            photo_config=photo_config,
        )

    db_config = getattr(settings, "DB_CONFIG")
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_data(db_config, today=now_local().date())
        logger.info("demo seed ready")

    return build_container(db_config=db_config, attendance_config=attendance_config, photo_config=photo_config)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Strict"
    app.config["SESSION_COOKIE_SECURE"] = not app.config["DEBUG"] and not app.config["TESTING"]

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    db_config = getattr(settings, "DB_CONFIG", {})
    logger.debug(
        "settings=%s backend=%s db=%s@%s:%s/%s",
        settings_module,
        getattr(settings, "DATA_BACKEND", "mysql"),
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    container = container or _build_from_settings(settings)
    app.extensions["coach_attendance"] = container

    register_coaches(app, container)
    register_dashboard(app, container)
    register_attendance(app, container)
    register_photos(app, container)

    return app
