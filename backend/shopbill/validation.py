from __future__ import annotations
from datetime import datetime
from decimal import InvalidOperation

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .money import to_cents, percent_to_bps
from .time_utils import parse_iso_datetime, normalize_datetime


# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
MAX_TAX_RATE_BPS = 10_000

USER_ROLES = ("super_admin", "admin", "user")
PRINT_STATUSES = ("not_printed", "printed", "reprinted")
PRINTER_WIDTHS = (58, 80)


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    - writable_fields: what callers are allowed to set
    - required_on_create: fields required on create
    - blank_to_null: optional text fields where "" means "not set"
    """
    writable_fields: set[str]
    required_on_create: set[str] = frozenset()
    blank_to_null: set[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "0", "false", "no"}:
            return value.strip().lower() in {"1", "true", "yes"}
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return normalize_datetime(value)
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming data against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        val = _coerce_value(col, raw)
        if k in policy.blank_to_null and val == "":
            val = None

        if val is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def normalize_product_amounts(payload: dict) -> dict:
    """
    Accept human amounts (`price`, `tax_percentage`) alongside the stored
    integer forms (`price_cents`, `tax_rate_bps`). Returns a new dict holding
    only the integer forms.
    """
    out = dict(payload or {})
    if "price" in out:
        raw = out.pop("price")
        try:
            out["price_cents"] = None if raw is None else to_cents(raw)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("price must be a number")
    if "tax_percentage" in out:
        raw = out.pop("tax_percentage")
        try:
            out["tax_rate_bps"] = 0 if raw in (None, "") else percent_to_bps(raw)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("tax_percentage must be a number")
    return out


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")

    if "tax_rate_bps" in patch and patch["tax_rate_bps"] is not None:
        bps = patch["tax_rate_bps"]
        if bps < 0 or bps > MAX_TAX_RATE_BPS:
            raise ValidationError("tax percentage must be between 0 and 100")


def enforce_rules_user(patch: dict) -> None:
    if "role" in patch and patch["role"] not in USER_ROLES:
        raise ValidationError(f"role must be one of {', '.join(USER_ROLES)}")
    pin = patch.get("pin")
    if pin is not None and not (len(pin) == 4 and pin.isdigit()):
        raise ValidationError("pin must be exactly 4 digits")
    phone = patch.get("phone")
    if phone is not None and not phone.isdigit():
        raise ValidationError("phone must contain digits only")


def enforce_rules_quantity(quantity: Any, *, allow_zero: bool = False) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise ValidationError("quantity must be > 0")
    return quantity
