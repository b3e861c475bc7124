# Overview: Flask API routes for users, customers, shop settings and administrative resets.

"""
Admin routes.

Resets are destructive. They require {"confirm": true} in the body and always
keep at least one super_admin account.
"""

from flask import Blueprint, current_app

from ..extensions import db
from ..errors import ShopBillError, ValidationError
from ..services import customer_service, maintenance_service, settings_service, user_service
from . import error_response, json_body

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _default_super_admin() -> dict:
    return {
        "username": current_app.config["DEFAULT_SUPER_ADMIN_USERNAME"],
        "phone": current_app.config["DEFAULT_SUPER_ADMIN_PHONE"],
        "pin": current_app.config["DEFAULT_SUPER_ADMIN_PIN"],
    }


def _require_confirm(data: dict) -> None:
    if data.get("confirm") is not True:
        raise ValidationError("confirm must be true")


# ============ USERS ============

@admin_bp.get("/users")
def list_users():
    users = user_service.list_users(db.session)
    return {"items": [u.to_dict() for u in users], "count": len(users)}


@admin_bp.post("/users")
def create_user():
    try:
        data = json_body()
        created_by = data.pop("created_by", None)
        user = user_service.create_user(db.session, data, created_by=created_by)
    except ShopBillError as e:
        return error_response(e)
    return user.to_dict(), 201


@admin_bp.put("/users/<int:user_id>")
def update_user(user_id: int):
    try:
        user = user_service.update_user(db.session, user_id, json_body())
    except ShopBillError as e:
        return error_response(e)
    return user.to_dict()


@admin_bp.delete("/users/<int:user_id>")
def delete_user(user_id: int):
    try:
        user_service.delete_user(db.session, user_id)
    except ShopBillError as e:
        return error_response(e)
    return {"ok": True}


@admin_bp.post("/login")
def login():
    try:
        data = json_body()
        user = user_service.authenticate(
            db.session,
            pin=str(data.get("pin") or ""),
            username=data.get("username"),
            phone=data.get("phone"),
        )
    except ShopBillError as e:
        return error_response(e)
    if user is None:
        return {"error": "Invalid credentials"}, 401
    return {"user": user.to_dict()}


# ============ CUSTOMERS ============

@admin_bp.get("/customers")
def list_customers():
    customers = customer_service.list_customers(db.session)
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}


@admin_bp.post("/customers")
def create_customer():
    try:
        customer = customer_service.create_customer(db.session, json_body())
    except ShopBillError as e:
        return error_response(e)
    return customer.to_dict(), 201


@admin_bp.put("/customers/<int:customer_id>")
def update_customer(customer_id: int):
    try:
        customer = customer_service.update_customer(db.session, customer_id, json_body())
    except ShopBillError as e:
        return error_response(e)
    return customer.to_dict()


@admin_bp.get("/customers/by-phone/<phone>")
def customer_by_phone(phone: str):
    customer = customer_service.get_customer_by_phone(db.session, phone)
    return {"item": customer.to_dict() if customer else None}


# ============ SETTINGS ============

@admin_bp.get("/settings")
def get_settings():
    return {"settings": settings_service.get_settings(db.session)}


@admin_bp.put("/settings")
def upsert_settings():
    try:
        settings = settings_service.upsert_settings(db.session, json_body())
    except ShopBillError as e:
        return error_response(e)
    return {"settings": settings}


# ============ MAINTENANCE ============

@admin_bp.get("/stats")
def stats():
    return maintenance_service.database_stats(db.session)


@admin_bp.post("/reset-transactional")
def reset_transactional():
    try:
        data = json_body()
        _require_confirm(data)
        deleted = maintenance_service.reset_transactional_data(
            db.session, include_customers=bool(data.get("include_customers"))
        )
    except ShopBillError as e:
        return error_response(e)
    current_app.logger.warning("Transactional data reset: %s", deleted)
    return {"deleted": deleted}


@admin_bp.post("/reset-all")
def reset_all():
    try:
        _require_confirm(json_body())
        deleted = maintenance_service.reset_all(db.session, super_admin=_default_super_admin())
    except ShopBillError as e:
        return error_response(e)
    current_app.logger.warning("Full data reset: %s", deleted)
    return {"deleted": deleted}
