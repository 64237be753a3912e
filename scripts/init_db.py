"""Create the college_admin schema and the bootstrap admin account.

Usage: APP_ENV=production python scripts/init_db.py
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

from src.college_admin.college_admin.database.bootstrap import apply_schema, ensure_admin_account, list_tables

logger = logging.getLogger("init_db")


def main() -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = sorted(list_tables(db_config))
    logger.info("Schema applied to %s (%d tables: %s)", db_config.get("database"), len(tables), ", ".join(tables))

    email = getattr(settings, "BOOTSTRAP_ADMIN_EMAIL", None)
    password = getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", None)
    if not (email and password):
        logger.warning("BOOTSTRAP_ADMIN_EMAIL/BOOTSTRAP_ADMIN_PASSWORD not set; no admin account created")
        return 0
    ensure_admin_account(db_config, email=email, password=password)
    logger.info("Admin account %s present", email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
