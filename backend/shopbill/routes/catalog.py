# Overview: Flask API routes for categories, products, lookup and search.

from flask import Blueprint, current_app, request

from ..engine import get_engine
from ..errors import ShopBillError
from ..services import import_service
from . import error_response, json_body

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/categories")
def list_categories():
    categories = get_engine().catalog.list_categories()
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@catalog_bp.post("/categories")
def create_category():
    try:
        category = get_engine().catalog.create_category(json_body())
    except ShopBillError as e:
        return error_response(e)
    return category.to_dict(), 201


@catalog_bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    try:
        category = get_engine().catalog.update_category(category_id, json_body())
    except ShopBillError as e:
        return error_response(e)
    return category.to_dict()


@catalog_bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    try:
        get_engine().catalog.delete_category(category_id)
    except ShopBillError as e:
        return error_response(e)
    return {"ok": True}


@catalog_bp.get("/products")
def list_products():
    """
    Query params:
    - category_id: int (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    result = get_engine().catalog.list_products(
        category_id=request.args.get("category_id", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    result["items"] = [p.to_dict() for p in result["items"]]
    return result


@catalog_bp.get("/products/search")
def search_products():
    query = request.args.get("q", "")
    limit = request.args.get("limit", type=int) or current_app.config["SEARCH_LIMIT"]
    try:
        products = get_engine().catalog.search(query, limit)
    except ShopBillError as e:
        return error_response(e)
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@catalog_bp.get("/products/by-code/<code>")
def product_by_code(code: str):
    product = get_engine().catalog.get_by_code(code)
    return {"item": product.to_dict() if product else None}


@catalog_bp.get("/products/by-barcode/<barcode>")
def product_by_barcode(barcode: str):
    product = get_engine().catalog.get_by_barcode(barcode)
    return {"item": product.to_dict() if product else None}


@catalog_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    try:
        product = get_engine().catalog.get_product(product_id)
    except ShopBillError as e:
        return error_response(e)
    return product.to_dict()


@catalog_bp.post("/products")
def create_product():
    try:
        product = get_engine().catalog.create_product(json_body())
    except ShopBillError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500
    return product.to_dict(), 201


@catalog_bp.post("/products/bulk")
def bulk_insert_products():
    """Import many products at once; nothing is inserted if any row is rejected."""
    try:
        products = get_engine().catalog.bulk_insert(json_body().get("products"))
    except ShopBillError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to bulk insert products")
        return {"error": "Internal server error"}, 500
    return {"inserted": len(products), "ids": [p.id for p in products]}, 201


@catalog_bp.post("/products/import")
def import_products_file():
    """Multipart upload of a .csv or .xlsx product sheet; all rows or none."""
    if "file" not in request.files:
        return {"error": "file is required"}, 400
    upload = request.files["file"]
    try:
        rows = import_service.read_rows(upload.stream, upload.filename or "")
        products = get_engine().catalog.bulk_insert(import_service.rows_to_payloads(rows))
    except ShopBillError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to import products")
        return {"error": "Internal server error"}, 500
    return {"inserted": len(products), "ids": [p.id for p in products]}, 201


@catalog_bp.put("/products/<int:product_id>")
def update_product(product_id: int):
    try:
        product = get_engine().catalog.update_product(product_id, json_body())
    except ShopBillError as e:
        return error_response(e)
    return product.to_dict()


@catalog_bp.post("/products/<int:product_id>/stock")
def adjust_stock(product_id: int):
    try:
        delta = json_body().get("delta")
        stock = get_engine().catalog.adjust_stock(product_id, delta)
    except ShopBillError as e:
        return error_response(e)
    return {"product_id": product_id, "stock": stock}


@catalog_bp.delete("/products/<int:product_id>")
def delete_product(product_id: int):
    try:
        get_engine().catalog.delete_product(product_id)
    except ShopBillError as e:
        return error_response(e)
    return {"ok": True}
