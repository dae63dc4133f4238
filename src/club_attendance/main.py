from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_members, list_tables

from .container import Container, Settings, build_container
from .announcements.controller import register as register_announcements
from .attendance.controller import register as register_attendance
from .kiosk.controller import register as register_kiosk
from .members.controller import register as register_members
from .registrations.controller import register as register_registrations
from .stats.controller import register as register_stats

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[2]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["IDENTITY_CALLBACK_SECRET"] = str(getattr(settings, "IDENTITY_CALLBACK_SECRET", "") or "")
    app.json.ensure_ascii = False

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
        auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
        if auto_init_db:
            apply_schema(db_config, schema_path=ROOT_DIR / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if auto_seed_db:
            apply_seed_sql(db_config, seed_path=ROOT_DIR / "database" / "seed.sql")
            ensure_demo_members(db_config)
            logger.info("demo seed ready")

        container = build_container(db_config=db_config, settings=Settings.from_module(settings))

    app.extensions["club_attendance"] = container

    register_kiosk(app, container)
    register_registrations(app, container)
    register_attendance(app, container)
    register_stats(app, container)
    register_members(app, container)
    register_announcements(app, container)

    return app
