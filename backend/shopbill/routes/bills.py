# Overview: Flask API routes for bills; parses input and returns JSON responses.

"""
Bill routes.

The UI posts a cart as [{"product_id": 1, "quantity": 2}, ...]. Creating or
correcting a bill adjusts stock in the same transaction; responses list any
product whose stock went below zero so the cashier can be warned.
"""

from datetime import date

from flask import Blueprint, current_app, request

from ..engine import get_engine
from ..errors import ShopBillError, ValidationError
from . import error_response, json_body

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


def _oversold_payload(engine, bill) -> list[dict]:
    oversold = engine.catalog.oversold(line.product_id for line in bill.line_items)
    if oversold:
        current_app.logger.warning(
            "Bill %s left negative stock for products %s",
            bill.id,
            [p.id for p in oversold],
        )
    return [{"product_id": p.id, "stock": p.stock} for p in oversold]


@bills_bp.post("")
def create_bill_route():
    engine = get_engine()
    try:
        data = json_body()
        bill = engine.manager.create_bill(
            data.get("items") or [],
            created_by=data.get("created_by"),
            customer_id=data.get("customer_id"),
        )
    except ShopBillError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return {"error": "Internal server error"}, 500
    return {"bill": bill.to_dict(), "oversold": _oversold_payload(engine, bill)}, 201


@bills_bp.put("/<int:bill_id>")
def update_bill_route(bill_id: int):
    engine = get_engine()
    try:
        data = json_body()
        items = data.get("items")
        # An empty list voids every line; a missing cart is a client error.
        if not isinstance(items, list):
            raise ValidationError("items is required", details={"items": "must be a list"})
        kwargs = {"corrected_by": data.get("corrected_by")}
        if "customer_id" in data:
            kwargs["customer_id"] = data["customer_id"]
        bill = engine.manager.update_bill(bill_id, items, **kwargs)
    except ShopBillError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update bill")
        return {"error": "Internal server error"}, 500
    return {"bill": bill.to_dict(), "oversold": _oversold_payload(engine, bill)}


@bills_bp.post("/<int:bill_id>/print-status")
def set_print_status_route(bill_id: int):
    try:
        bill = get_engine().ledger.set_print_status(bill_id, json_body().get("print_status"))
    except ShopBillError as e:
        return error_response(e)
    return {"bill": bill.to_dict()}


@bills_bp.get("/<int:bill_id>")
def get_bill_route(bill_id: int):
    try:
        bill = get_engine().ledger.get_bill(bill_id)
        return {"bill": bill.to_dict()}
    except ShopBillError as e:
        return error_response(e)


@bills_bp.get("")
def list_bills_route():
    """
    Query params:
    - date: YYYY-MM-DD (optional) - bills of one day
    - limit / offset: int (optional)
    """
    ledger = get_engine().ledger
    try:
        raw_day = request.args.get("date")
        if raw_day:
            try:
                day = date.fromisoformat(raw_day)
            except ValueError:
                raise ValidationError("date must be YYYY-MM-DD")
            bills = ledger.bills_by_date(day)
        else:
            bills = ledger.list_bills(
                limit=request.args.get("limit", type=int),
                offset=request.args.get("offset", type=int),
            )
        return {"items": [b.to_dict() for b in bills], "count": len(bills)}
    except ShopBillError as e:
        return error_response(e)
