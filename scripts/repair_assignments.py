"""Rebuild faculty_courses from courses.faculty_id.

Run after an interrupted course reassignment; running it twice is harmless.
"""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.college_admin.college_admin.container import build_container

logger = logging.getLogger("repair_assignments")


def main() -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG))

    report = container.course_service.repair_faculty_assignments()
    logger.info("Faculty assignments reconciled (added=%d, removed=%d)", report.added, report.removed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
