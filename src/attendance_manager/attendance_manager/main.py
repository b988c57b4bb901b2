from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import ensure_indexes, list_collections
from .reports.controller import register as register_reports
from .users.controller import register as register_users

logger = logging.getLogger("attendance_manager")


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logger.setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        mongo_config = getattr(settings, "MONGO_CONFIG")
        logger.info("settings=%s db=%s", settings_module, mongo_config.get("database"))
        container = build_container(
            mongo_config=mongo_config,
            identity_config=getattr(settings, "IDENTITY_CONFIG"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            db = container.conn.database()
            ensure_indexes(db)
            logger.info("indexes ready (collections=%d)", len(list_collections(db)))
    else:
        logger.info("settings=%s (injected container)", settings_module)

    register_error_handlers(app)

    @app.get("/api/health", endpoint="health")
    def health():
        if container.conn is None:
            return jsonify({"status": "ok", "database": "not configured"})
        container.conn.ping()
        return jsonify({"status": "ok", "database": "connected"})

    register_users(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    return app
