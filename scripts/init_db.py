from __future__ import annotations

import argparse
import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.common.logging_config import configure_logging
from src.attendance_payroll.attendance_payroll.database.bootstrap import apply_schema, list_tables

REQUIRED_TABLES = ("shifts", "users", "leave_applications", "attendance_days", "payrolls", "signatures")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the attendance & payroll schema")
    parser.add_argument("--env", help="APP_ENV override (development, testing, production)")
    args = parser.parse_args(argv)

    if args.env:
        os.environ["APP_ENV"] = args.env
    logger = configure_logging("INFO")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        logger.error("schema incomplete, missing tables: %s", ", ".join(missing))
        return 1

    print(f"OK: {db_config.get('database')} ready ({len(tables)} tables)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
