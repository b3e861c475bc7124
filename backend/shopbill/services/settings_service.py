# Overview: Shop settings singleton (identity, printer width, admin credential, first-run flag).

from __future__ import annotations

import bcrypt

from ..errors import ValidationError
from ..models import ShopSetting
from ..time_utils import to_utc_z
from ..validation import PRINTER_WIDTHS
from .transactions import atomic

SETTINGS_ID = "default"

TEXT_FIELDS = {"shop_name", "address", "phone", "logo_uri", "gstin", "admin_username"}
ALL_FIELDS = TEXT_FIELDS | {"printer_width", "setup_complete", "admin_password"}

DEFAULTS = {
    "shop_name": "",
    "address": "",
    "phone": "",
    "logo_uri": None,
    "gstin": None,
    "printer_width": 58,
    "admin_username": "admin",
    "setup_complete": False,
}

MIN_ADMIN_PASSWORD_LENGTH = 6


def _public(row: ShopSetting) -> dict:
    data = {**DEFAULTS, **(row.data or {})}
    data.pop("admin_password_hash", None)
    data["id"] = row.id
    data["created_at"] = to_utc_z(row.created_at)
    data["updated_at"] = to_utc_z(row.updated_at)
    return data


def _validated(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    unknown = sorted(set(payload) - ALL_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    patch: dict = {}
    for key in TEXT_FIELDS & set(payload):
        value = payload[key]
        patch[key] = None if value is None else str(value).strip()

    if "printer_width" in payload:
        width = payload["printer_width"]
        if width not in PRINTER_WIDTHS:
            raise ValidationError(f"printer_width must be one of {PRINTER_WIDTHS}")
        patch["printer_width"] = width

    if "setup_complete" in payload:
        if not isinstance(payload["setup_complete"], bool):
            raise ValidationError("setup_complete must be a boolean")
        patch["setup_complete"] = payload["setup_complete"]

    if "admin_password" in payload:
        password = payload["admin_password"]
        if not isinstance(password, str) or len(password) < MIN_ADMIN_PASSWORD_LENGTH:
            raise ValidationError(f"admin_password must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters")
        patch["admin_password_hash"] = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    if patch.get("admin_username") == "":
        raise ValidationError("admin_username cannot be blank")
    return patch


def get_settings(session) -> dict | None:
    row = session.get(ShopSetting, SETTINGS_ID)
    if row is None:
        return None
    return _public(row)


def upsert_settings(session, payload: dict) -> dict:
    """Merge payload into the singleton row, creating it on first save."""
    patch = _validated(payload)
    with atomic(session):
        row = session.get(ShopSetting, SETTINGS_ID)
        if row is None:
            row = ShopSetting(id=SETTINGS_ID, data={**DEFAULTS, **patch})
            session.add(row)
        else:
            # JSON column: assign a new dict so the change is detected
            row.data = {**(row.data or {}), **patch}
        session.flush()
    return _public(row)


def is_setup_complete(session) -> bool:
    settings = get_settings(session)
    return bool(settings and settings.get("setup_complete"))


def verify_admin_password(session, username: str, password: str) -> bool:
    row = session.get(ShopSetting, SETTINGS_ID)
    if row is None or not password:
        return False
    data = row.data or {}
    stored = data.get("admin_password_hash")
    if not stored or data.get("admin_username", DEFAULTS["admin_username"]) != username:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
