"""Environment-driven configuration.

Values are read lazily so tests (and a freshly written .env) can override them.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # must come BEFORE reading env-based configuration so values are populated

TRUE_TOKENS = ("1", "true", "yes", "on")


def get_db_path() -> str:
    return os.environ.get("ATTENDANCE_IMPORT_DB", "attendance_import.db")


def get_staging_dir() -> str:
    return os.environ.get("ATTENDANCE_IMPORT_STAGING", "staging")


def is_strict_mode() -> bool:
    return os.environ.get("ATTENDANCE_IMPORT_STRICT", "").strip().lower() in TRUE_TOKENS


def get_import_mode() -> str:
    return os.environ.get("ATTENDANCE_IMPORT_MODE", "grouped").strip().lower()


def get_log_level() -> str:
    return os.environ.get("ATTENDANCE_IMPORT_LOG_LEVEL", "INFO").upper()
