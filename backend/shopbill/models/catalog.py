from __future__ import annotations

from ..extensions import db
from ..money import from_cents, bps_to_percent
from ..time_utils import to_utc_z


class Category(db.Model):
    """
    Product grouping shown as a chip/tile on the billing screen.

    DELETION POLICY: a category still referenced by products cannot be deleted
    (the catalog service raises ConflictError; the FK backs it up).
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_name_en", "name_en"),
        db.Index("ix_categories_name_ta", "name_ta"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name_en = db.Column(db.String(120), nullable=False)
    name_ta = db.Column(db.String(120), nullable=False)
    icon = db.Column(db.String(64), nullable=False, default="pricetag")
    color = db.Column(db.String(16), nullable=False, default="#7f8c8d")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name_en={self.name_en!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name_en": self.name_en,
            "name_ta": self.name_ta,
            "icon": self.icon,
            "color": self.color,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    CODES:
    - product_code: short shop-assigned number typed by the cashier ("12" for Rice)
    - barcode: scanner value
    Both are optional and unique when present (SQLite allows many NULLs).

    STOCK:
    - Integer, may go negative. A negative value records an over-sell; it is
      surfaced by low-stock reports, never rejected here.
    - Only product CRUD and the reconciliation manager write this column.

    Money is stored in cents and tax as basis points (500 = 5%).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("product_code", name="uq_products_product_code"),
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.Index("ix_products_name_en", "name_en"),
        db.Index("ix_products_name_ta", "name_ta"),
        db.Index("ix_products_price_cents", "price_cents"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(128), nullable=True)

    name_en = db.Column(db.String(255), nullable=False)
    name_ta = db.Column(db.String(255), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    price_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_inclusive = db.Column(db.Boolean, nullable=False, default=False)

    unit = db.Column(db.String(32), nullable=False, default="pcs")
    stock = db.Column(db.Integer, nullable=False, default=0)
    image_uri = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    @property
    def price(self):
        return from_cents(self.price_cents)

    @property
    def tax_percentage(self):
        return bps_to_percent(self.tax_rate_bps or 0)

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r} name_en={self.name_en!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "barcode": self.barcode,
            "name_en": self.name_en,
            "name_ta": self.name_ta,
            "category_id": self.category_id,
            "price_cents": self.price_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_percentage": str(self.tax_percentage),
            "tax_inclusive": self.tax_inclusive,
            "unit": self.unit,
            "stock": self.stock,
            "image_uri": self.image_uri,
            "created_at": to_utc_z(self.created_at),
        }
