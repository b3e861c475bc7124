# Overview: Catalog Store - categories, products, code/barcode lookup, stock deltas and ranked search.

"""
Catalog Store

Invariants:
- product_code and barcode are unique when present. Duplicates are rejected
  with ConflictError before the write; the table constraint backs this up.
- Stock deltas are applied as a single `UPDATE ... SET stock = stock + :delta`
  and never clamped at zero. Negative stock is an over-sell signal for reports.
- bulk_insert() is all-or-nothing.

Search ranking (search()):
    1. exact product_code match
    2. exact barcode match
    3. English name starts with the query
    4. any other substring match on code, barcode or either name
  Ties inside a tier are broken by English name (case-insensitive), then id.
"""

from __future__ import annotations

from sqlalchemy import case, func, or_, update

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Category, Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    normalize_product_amounts,
    enforce_rules_product,
)
from .transactions import atomic, lock_for_update

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name_en", "name_ta", "icon", "color"},
    required_on_create={"name_en", "name_ta"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_code", "barcode", "name_en", "name_ta", "category_id",
        "price_cents", "tax_rate_bps", "tax_inclusive", "unit", "stock", "image_uri",
    },
    required_on_create={"name_en", "name_ta", "category_id", "price_cents"},
    blank_to_null={"product_code", "barcode", "image_uri"},
)

PER_PAGE_DEFAULT = 20
PER_PAGE_MAX = 100


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogStore:
    """Persistent product/category table bound to one SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    # ============ CATEGORIES ============

    def list_categories(self) -> list[Category]:
        return self.session.query(Category).order_by(Category.name_en.asc(), Category.id.asc()).all()

    def get_category(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found", details={"category_id": category_id})
        return category

    def create_category(self, payload: dict) -> Category:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        with atomic(self.session):
            category = Category(**patch)
            self.session.add(category)
            self.session.flush()
        return category

    def update_category(self, category_id: int, payload: dict) -> Category:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        with atomic(self.session):
            category = self.get_category(category_id)
            for key, value in patch.items():
                setattr(category, key, value)
        return category

    def delete_category(self, category_id: int) -> None:
        with atomic(self.session):
            category = self.get_category(category_id)
            in_use = self.session.query(func.count(Product.id)).filter(Product.category_id == category_id).scalar()
            if in_use:
                raise ConflictError(
                    "Category still has products",
                    details={"category_id": category_id, "product_count": int(in_use)},
                )
            self.session.delete(category)

    # ============ PRODUCTS ============

    def _validated_product(self, payload: dict, *, partial: bool) -> dict:
        patch = validate_payload(
            model=Product,
            payload=normalize_product_amounts(payload),
            policy=PRODUCT_POLICY,
            partial=partial,
        )
        enforce_rules_product(patch)
        return patch

    def _ensure_unique_codes(self, patch: dict, *, exclude_id: int | None = None) -> None:
        for field in ("product_code", "barcode"):
            value = patch.get(field)
            if value is None:
                continue
            q = self.session.query(Product.id).filter(getattr(Product, field) == value)
            if exclude_id is not None:
                q = q.filter(Product.id != exclude_id)
            if q.first() is not None:
                raise ConflictError(f"{field} already exists", details={field: value})

    def list_products(
        self,
        *,
        category_id: int | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> dict:
        """
        Products ordered by English name, optionally filtered by category.

        Returns all rows when page is None, otherwise one page plus metadata.
        """
        base_query = self.session.query(Product)
        if category_id is not None:
            base_query = base_query.filter(Product.category_id == category_id)
        base_query = base_query.order_by(Product.name_en.asc(), Product.id.asc())

        if page is None:
            products = base_query.all()
            return {"items": products, "count": len(products)}

        per_page = min(per_page or PER_PAGE_DEFAULT, PER_PAGE_MAX)
        page = max(page, 1)

        total = base_query.count()
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1
        products = base_query.offset((page - 1) * per_page).limit(per_page).all()

        return {
            "items": products,
            "count": len(products),
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def products_count(self) -> int:
        return int(self.session.query(func.count(Product.id)).scalar() or 0)

    def get_product(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        return product

    def get_by_code(self, code: str) -> Product | None:
        if not code:
            return None
        return self.session.query(Product).filter(Product.product_code == code.strip()).first()

    def get_by_barcode(self, barcode: str) -> Product | None:
        if not barcode:
            return None
        return self.session.query(Product).filter(Product.barcode == barcode.strip()).first()

    def create_product(self, payload: dict) -> Product:
        patch = self._validated_product(payload, partial=False)
        with atomic(self.session):
            self.get_category(patch["category_id"])
            self._ensure_unique_codes(patch)
            product = Product(**patch)
            self.session.add(product)
            self.session.flush()
        return product

    def update_product(self, product_id: int, payload: dict) -> Product:
        patch = self._validated_product(payload, partial=True)
        with atomic(self.session):
            product = lock_for_update(self.session.query(Product).filter_by(id=product_id)).first()
            if product is None:
                raise NotFoundError("Product not found", details={"product_id": product_id})
            if "category_id" in patch:
                self.get_category(patch["category_id"])
            self._ensure_unique_codes(patch, exclude_id=product_id)
            for key, value in patch.items():
                setattr(product, key, value)
        return product

    def delete_product(self, product_id: int) -> None:
        """Hard delete; bills keep their own snapshot of the product."""
        with atomic(self.session):
            product = self.get_product(product_id)
            self.session.delete(product)

    def bulk_insert(self, payloads: list[dict]) -> list[Product]:
        """
        Insert every product or none.

        All rows are validated (fields, duplicate codes inside the batch and
        against the table, category existence) before the transaction opens.
        """
        if not isinstance(payloads, list):
            raise ValidationError("products must be a list")
        if not payloads:
            return []

        patches = []
        for row, payload in enumerate(payloads, start=1):
            try:
                patches.append(self._validated_product(payload, partial=False))
            except ValidationError as e:
                raise ValidationError(f"row {row}: {e}", details={"row": row, **e.details}) from e

        for field in ("product_code", "barcode"):
            seen: dict[str, int] = {}
            for row, patch in enumerate(patches, start=1):
                value = patch.get(field)
                if value is None:
                    continue
                if value in seen:
                    raise ConflictError(
                        f"duplicate {field} in import",
                        details={field: value, "rows": [seen[value], row]},
                    )
                seen[value] = row
            if seen:
                clash = self.session.query(getattr(Product, field)).filter(
                    getattr(Product, field).in_(list(seen))
                ).first()
                if clash is not None:
                    raise ConflictError(
                        f"{field} already exists",
                        details={field: clash[0], "row": seen[clash[0]]},
                    )

        category_ids = {patch["category_id"] for patch in patches}
        known = {
            row[0]
            for row in self.session.query(Category.id).filter(Category.id.in_(category_ids)).all()
        }
        missing = sorted(category_ids - known)
        if missing:
            raise NotFoundError("Category not found", details={"category_ids": missing})

        with atomic(self.session):
            products = [Product(**patch) for patch in patches]
            self.session.add_all(products)
            self.session.flush()
        return products

    # ============ STOCK ============

    def apply_stock_delta(self, product_id: int, delta: int) -> int:
        """
        Increment stock inside the caller's transaction (no commit).

        Returns the new stock value. Raises NotFoundError for unknown products.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("stock delta must be an integer")
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + delta)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        return int(self.session.query(Product.stock).filter(Product.id == product_id).scalar())

    def adjust_stock(self, product_id: int, delta: int) -> int:
        """Standalone stock correction committed on its own."""
        with atomic(self.session):
            return self.apply_stock_delta(product_id, delta)

    def oversold(self, product_ids) -> list[Product]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return (
            self.session.query(Product)
            .filter(Product.id.in_(ids), Product.stock < 0)
            .order_by(Product.id.asc())
            .all()
        )

    # ============ SEARCH ============

    def search(self, query: str, limit: int = 50) -> list[Product]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError("limit must be a positive integer")
        term = (query or "").strip()
        if not term:
            return []

        escaped = _escape_like(term)
        contains = f"%{escaped}%"
        prefix = f"{escaped}%"
        lowered = term.lower()

        tier = case(
            (func.lower(Product.product_code) == lowered, 1),
            (func.lower(Product.barcode) == lowered, 2),
            (Product.name_en.ilike(prefix, escape="\\"), 3),
            else_=4,
        )

        return (
            self.session.query(Product)
            .filter(
                or_(
                    Product.product_code.ilike(contains, escape="\\"),
                    Product.barcode.ilike(contains, escape="\\"),
                    Product.name_en.ilike(contains, escape="\\"),
                    Product.name_ta.ilike(contains, escape="\\"),
                )
            )
            .order_by(tier, func.lower(Product.name_en).asc(), Product.id.asc())
            .limit(limit)
            .all()
        )
