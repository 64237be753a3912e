from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_COURSE_CREDITS, DEFAULT_DETAIN_THRESHOLD
from .database.bootstrap import apply_schema, ensure_admin_account, list_tables

from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .courses.controller import register as register_courses
from .faculty.controller import register as register_faculty
from .grades.controller import register as register_grades
from .students.controller import register as register_students
from .timetable.controller import register as register_timetable
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Pass a prebuilt `container` to skip database setup (tests wire in-memory repositories).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

        admin_email = getattr(settings, "BOOTSTRAP_ADMIN_EMAIL", None)
        admin_password = getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", None)
        if admin_email and admin_password:
            ensure_admin_account(db_config, email=admin_email, password=admin_password)

        container = build_container(
            db_config=db_config,
            detain_threshold=float(getattr(settings, "ATTENDANCE_DETAIN_THRESHOLD", DEFAULT_DETAIN_THRESHOLD)),
            default_credits=int(getattr(settings, "DEFAULT_COURSE_CREDITS", DEFAULT_COURSE_CREDITS)),
        )

    app.extensions["container"] = container
    register_error_handlers(app)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "OK", "message": "College administration API is running"})

    register_users(app, container)
    register_students(app, container)
    register_faculty(app, container)
    register_courses(app, container)
    register_attendance(app, container)
    register_grades(app, container)
    register_timetable(app, container)
    register_analytics(app, container)

    return app
