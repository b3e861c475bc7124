# Overview: Staff accounts, PIN login and the permanent super_admin guard.

"""
Users

INVARIANT: at least one super_admin exists at all times. Deleting or demoting
the last one raises ProtectedUserError.
"""

from __future__ import annotations

import bcrypt
from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ProtectedUserError, ValidationError
from ..models import User
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_user
from .transactions import atomic, lock_for_update

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "phone", "role"},
    required_on_create={"username"},
    blank_to_null={"phone"},
)

BCRYPT_ROUNDS = 12


def hash_pin(pin: str) -> str:
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_pin(pin: str, pin_hash: str | None) -> bool:
    if not pin or not pin_hash:
        return False
    return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))


def _split_pin(payload: dict) -> tuple[dict, str | None, bool]:
    data = dict(payload or {})
    has_pin = "pin" in data
    pin = data.pop("pin", None)
    if pin is not None:
        pin = str(pin).strip() or None
    return data, pin, has_pin


def _super_admin_count(session) -> int:
    return int(session.query(func.count(User.id)).filter(User.role == "super_admin").scalar() or 0)


def _ensure_unique(session, patch: dict, *, exclude_id: int | None = None) -> None:
    for field in ("username", "phone"):
        value = patch.get(field)
        if value is None:
            continue
        q = session.query(User.id).filter(getattr(User, field) == value)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first() is not None:
            raise ConflictError(f"{field} already exists", details={field: value})


def list_users(session) -> list[User]:
    return session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": user_id})
    return user


def get_user_by_username(session, username: str) -> User | None:
    if not username:
        return None
    return session.query(User).filter(User.username == username.strip()).first()


def _create_user_inner(session, patch: dict, pin: str | None, created_by: int | None) -> User:
    user = User(**patch)
    user.role = patch.get("role") or "user"
    user.pin_hash = hash_pin(pin) if pin else None
    user.created_by = created_by
    session.add(user)
    session.flush()
    return user


def create_user(session, payload: dict, *, created_by: int | None = None) -> User:
    data, pin, _ = _split_pin(payload)
    patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=False)
    enforce_rules_user({**patch, "pin": pin})
    if pin and not patch.get("phone"):
        raise ValidationError("a PIN requires a phone number")

    with atomic(session):
        if created_by is not None:
            get_user(session, created_by)
        _ensure_unique(session, patch)
        user = _create_user_inner(session, patch, pin, created_by)
    return user


def update_user(session, user_id: int, payload: dict) -> User:
    data, pin, has_pin = _split_pin(payload)
    patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=True)
    enforce_rules_user({**patch, "pin": pin})

    with atomic(session):
        user = lock_for_update(session.query(User).filter_by(id=user_id)).first()
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})

        demoting = user.role == "super_admin" and patch.get("role", "super_admin") != "super_admin"
        if demoting and _super_admin_count(session) <= 1:
            raise ProtectedUserError("Cannot demote the last super_admin", details={"user_id": user_id})

        _ensure_unique(session, patch, exclude_id=user_id)
        for key, value in patch.items():
            setattr(user, key, value)
        if has_pin:
            user.pin_hash = hash_pin(pin) if pin else None
        if user.pin_hash and not user.phone:
            raise ValidationError("a PIN requires a phone number")
    return user


def delete_user(session, user_id: int) -> None:
    with atomic(session):
        user = get_user(session, user_id)
        if user.role == "super_admin" and _super_admin_count(session) <= 1:
            raise ProtectedUserError("Cannot delete the last super_admin", details={"user_id": user_id})
        session.delete(user)


def authenticate(session, *, pin: str, username: str | None = None, phone: str | None = None) -> User | None:
    """Login with username + PIN or phone + PIN. Returns None on bad credentials."""
    if username:
        candidates = session.query(User).filter(User.username == username.strip()).all()
    elif phone:
        candidates = session.query(User).filter(User.phone == phone.strip()).all()
    else:
        raise ValidationError("username or phone is required")
    for user in candidates:
        if verify_pin(pin, user.pin_hash):
            return user
    return None


def ensure_super_admin_inner(session, *, username: str, phone: str, pin: str) -> User:
    """Inside the caller's transaction: return a super_admin, creating the default one if none exists."""
    existing = (
        session.query(User)
        .filter(User.role == "super_admin")
        .order_by(User.id.asc())
        .first()
    )
    if existing is not None:
        return existing
    clash = get_user_by_username(session, username)
    if clash is not None:
        # Promote the account that already owns the default username
        clash.role = "super_admin"
        session.flush()
        return clash
    return _create_user_inner(
        session,
        {"username": username, "phone": phone, "role": "super_admin"},
        pin,
        None,
    )


def ensure_super_admin(session, *, username: str, phone: str, pin: str) -> User:
    with atomic(session):
        user = ensure_super_admin_inner(session, username=username, phone=phone, pin=pin)
    return user
