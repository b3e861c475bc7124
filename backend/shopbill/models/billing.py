from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Customer(db.Model):
    """Walk-in customer identified by phone number; optional on a bill."""
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_customers_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=False)
    address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Bill(db.Model):
    """
    A committed sale.

    LINE ITEMS: `items` holds a versioned JSON envelope of snapshot line items
    (see services/line_items.py). Snapshots are copies of the product's
    pricing fields at the time of sale; later product edits never touch them.

    TOTALS (cents): grand_total_cents == subtotal_cents + tax_cents + round_off_cents

    LIFECYCLE: COMMITTED -> CORRECTED (any number of corrections). Bills are
    never deleted by the billing engine; only administrative resets purge them.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.Index("ix_bills_created_at", "created_at"),
        db.Index("ix_bills_created_by", "created_by"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    items = db.Column(db.Text, nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False)
    round_off_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    print_status = db.Column(db.String(16), nullable=False, default="not_printed")
    status = db.Column(db.String(16), nullable=False, default="COMMITTED")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    # User attribution (no FK: staff accounts may be removed while their bills remain)
    created_by = db.Column(db.Integer, nullable=False)

    corrected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    corrected_by = db.Column(db.Integer, nullable=True)

    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True))

    @property
    def line_items(self):
        from ..services.line_items import decode_line_items
        return decode_line_items(self.items)

    def __repr__(self) -> str:
        return f"<Bill id={self.id} grand_total_cents={self.grand_total_cents} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [item.to_dict() for item in self.line_items],
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "round_off_cents": self.round_off_cents,
            "grand_total_cents": self.grand_total_cents,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "print_status": self.print_status,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "created_by": self.created_by,
            "corrected_at": to_utc_z(self.corrected_at),
            "corrected_by": self.corrected_by,
        }
