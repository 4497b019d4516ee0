"""Environment-driven settings shared by the app, db and tool packages."""

from __future__ import annotations

import os
from datetime import timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

ROOT_DIR = Path(__file__).resolve().parent.parent


def backend_name() -> str:
    return os.getenv("SLEEPLOG_BACKEND", "sqlite").lower()


def db_path() -> Path:
    return Path(os.getenv("SLEEPLOG_DB", ROOT_DIR / "data" / "sleeplog.db"))


def default_user() -> str | None:
    return os.getenv("SLEEPLOG_DEFAULT_USER") or None


def display_timezone() -> tzinfo:
    """Zone used to split events into calendar days."""
    name = os.getenv("SLEEPLOG_TIMEZONE", "UTC")
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "info").lower()


__all__ = ["ROOT_DIR", "backend_name", "db_path", "default_user", "display_timezone", "log_level"]
