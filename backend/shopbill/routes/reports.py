# Overview: Flask API routes for sales and inventory reports (read-only).

from datetime import date

from flask import Blueprint, current_app, request

from ..engine import get_engine
from ..errors import ShopBillError, ValidationError
from . import error_response, required_datetime_arg

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
def sales_in_range():
    try:
        summary = get_engine().reports.sales_in_range(
            required_datetime_arg("start"), required_datetime_arg("end")
        )
    except ShopBillError as e:
        return error_response(e)
    summary["bills"] = [b.to_dict() for b in summary["bills"]]
    return summary


@reports_bp.get("/daily")
def daily_sales():
    raw = request.args.get("date")
    try:
        try:
            day = date.fromisoformat(raw) if raw else date.today()
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD")
        summary = get_engine().reports.daily_sales(day)
    except ShopBillError as e:
        return error_response(e)
    summary["bills"] = [b.to_dict() for b in summary["bills"]]
    return summary


@reports_bp.get("/products")
def per_product_stats():
    try:
        rows = get_engine().reports.per_product_stats(
            required_datetime_arg("start"), required_datetime_arg("end")
        )
    except ShopBillError as e:
        return error_response(e)
    return {"rows": rows}


@reports_bp.get("/periods")
def sales_by_period():
    try:
        rows = get_engine().reports.sales_by_period(
            required_datetime_arg("start"),
            required_datetime_arg("end"),
            request.args.get("group_by", "day"),
        )
    except ShopBillError as e:
        return error_response(e)
    return {"rows": rows}


@reports_bp.get("/low-stock")
def low_stock():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    products = get_engine().reports.low_stock(threshold)
    return {"threshold": threshold, "items": [p.to_dict() for p in products]}


@reports_bp.get("/inventory-value")
def inventory_value():
    return {"inventory_value_cents": get_engine().reports.inventory_value()}


@reports_bp.get("/sold-per-product")
def sold_per_product():
    sold = get_engine().reports.total_sold_per_product()
    return {"sold": {str(pid): qty for pid, qty in sold.items()}}
