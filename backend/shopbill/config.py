# backend/shopbill/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopbill.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopbill.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLITE_WAL = _env_bool("SQLITE_WAL", True)

    # Grand totals are rounded to a multiple of this many cents (100 = nearest rupee).
    # 0 disables round-off.
    ROUND_OFF_UNIT_CENTS = int(os.environ.get("ROUND_OFF_UNIT_CENTS", "0"))

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    SEARCH_LIMIT = int(os.environ.get("SEARCH_LIMIT", "50"))

    # Permanent super admin recreated by `system init` and resetAll
    DEFAULT_SUPER_ADMIN_USERNAME = os.environ.get("DEFAULT_SUPER_ADMIN_USERNAME", "superadmin")
    DEFAULT_SUPER_ADMIN_PHONE = os.environ.get("DEFAULT_SUPER_ADMIN_PHONE", "9999999999")
    DEFAULT_SUPER_ADMIN_PIN = os.environ.get("DEFAULT_SUPER_ADMIN_PIN", "0000")
