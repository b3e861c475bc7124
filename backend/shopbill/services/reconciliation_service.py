# Overview: Reconciliation Manager - commits bills and their stock effect as one transaction.

"""
Reconciliation Manager

create_bill(cart):
    validate cart (before any transaction)
    BEGIN
      snapshot each product's pricing into a LineItem
      insert the bill row with computed totals
      stock -= quantity for every line
    COMMIT  (any failure -> ROLLBACK; no bill row, no stock change)

update_bill(bill_id, cart):
    BEGIN
      read the bill's stored line items
      stock += original quantity for every original line   (revert)
      overwrite the bill with new line items and totals
      stock -= new quantity for every new line               (re-apply)
    COMMIT

Correction pricing: a product that was already on the bill keeps the price
and tax it was sold at; only products added by the correction are priced
from the live catalog.

Over-sell is allowed: stock may end below zero. Callers can list the
affected products with CatalogStore.oversold().
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from ..errors import EmptyCartError, NotFoundError, ValidationError
from ..models import Bill, Customer, Product
from ..time_utils import normalize_datetime
from ..validation import enforce_rules_quantity
from .catalog_service import CatalogStore
from .ledger_service import BillLedger
from .line_items import CartItem, LineItem
from .tax_service import CartTotals, compute_cart
from .transactions import atomic, lock_for_update

_KEEP = object()


def _as_cart_item(raw) -> CartItem:
    if isinstance(raw, CartItem):
        return raw
    if isinstance(raw, dict):
        try:
            return CartItem(product_id=raw["product_id"], quantity=raw["quantity"])
        except KeyError as e:
            raise ValidationError(f"cart item is missing {e.args[0]}")
    if isinstance(raw, (tuple, list)) and len(raw) == 2:
        return CartItem(product_id=raw[0], quantity=raw[1])
    raise ValidationError("cart item must be a CartItem, a mapping or a (product_id, quantity) pair")


def normalize_cart(cart: Iterable, *, allow_zero: bool) -> list[CartItem]:
    """
    Validate a cart and merge repeated products (first occurrence keeps its
    position). With allow_zero, zero-quantity entries are accepted and dropped.
    """
    if cart is None:
        cart = []
    merged: dict[int, int] = {}
    for raw in cart:
        item = _as_cart_item(raw)
        if isinstance(item.product_id, bool) or not isinstance(item.product_id, int):
            raise ValidationError("product_id must be an integer")
        quantity = enforce_rules_quantity(item.quantity, allow_zero=allow_zero)
        merged[item.product_id] = merged.get(item.product_id, 0) + quantity
    return [CartItem(product_id=pid, quantity=qty) for pid, qty in merged.items() if qty > 0]


def _validate_user_id(user_id, field: str) -> int:
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValidationError(f"{field} must be a user id")
    return user_id


class ReconciliationManager:
    def __init__(self, catalog: CatalogStore, ledger: BillLedger, *, round_off_unit_cents: int = 0):
        if catalog.session is not ledger.session:
            raise ValueError("catalog and ledger must share one session")
        self.session = catalog.session
        self.catalog = catalog
        self.ledger = ledger
        self.round_off_unit_cents = round_off_unit_cents

    def price(self, items: list[LineItem]) -> CartTotals:
        return compute_cart(
            (item.tax_input() for item in items),
            round_off_unit_cents=self.round_off_unit_cents,
        )

    def _ensure_customer(self, customer_id: int | None) -> None:
        if customer_id is None:
            return
        if self.session.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found", details={"customer_id": customer_id})

    def _snapshot(self, items: list[CartItem], prior: dict[int, LineItem] | None = None) -> list[LineItem]:
        prior = prior or {}
        lines = []
        for item in items:
            if item.product_id in prior:
                lines.append(replace(prior[item.product_id], quantity=item.quantity))
                continue
            product = lock_for_update(self.session.query(Product).filter_by(id=item.product_id)).first()
            if product is None:
                raise NotFoundError("Product not found", details={"product_id": item.product_id})
            lines.append(LineItem.snapshot(product, item.quantity))
        return lines

    def _apply(self, lines: list[LineItem], sign: int) -> None:
        for line in lines:
            self.catalog.apply_stock_delta(line.product_id, sign * line.quantity)

    def create_bill(
        self,
        cart: Iterable,
        *,
        created_by: int,
        customer_id: int | None = None,
        created_at: datetime | None = None,
    ) -> Bill:
        items = normalize_cart(cart, allow_zero=False)
        if not items:
            raise EmptyCartError("Cannot create a bill from an empty cart")
        _validate_user_id(created_by, "created_by")
        if created_at is not None:
            created_at = normalize_datetime(created_at)

        with atomic(self.session):
            self._ensure_customer(customer_id)
            lines = self._snapshot(items)
            bill = self.ledger.insert_bill(
                items=lines,
                totals=self.price(lines),
                created_by=created_by,
                customer_id=customer_id,
                created_at=created_at,
            )
            self._apply(lines, -1)
        return bill

    def update_bill(
        self,
        bill_id: int,
        cart: Iterable,
        *,
        corrected_by: int,
        customer_id=_KEEP,
    ) -> Bill:
        """
        Replace a bill's line items. Zero-quantity entries remove a product;
        an empty cart leaves a zero-total bill and restores all of its stock.
        """
        items = normalize_cart(cart, allow_zero=True)
        _validate_user_id(corrected_by, "corrected_by")

        with atomic(self.session):
            bill = self.ledger.get_bill(bill_id, lock=True)
            original = bill.line_items

            # Products deleted since the sale have no stock left to restore
            original_ids = {line.product_id for line in original}
            existing = {
                row[0]
                for row in self.session.query(Product.id).filter(Product.id.in_(original_ids)).all()
            }
            self._apply([line for line in original if line.product_id in existing], +1)

            if customer_id is _KEEP:
                customer_id = bill.customer_id
            else:
                self._ensure_customer(customer_id)

            lines = self._snapshot(items, prior={line.product_id: line for line in original})
            self.ledger.overwrite_bill(
                bill,
                items=lines,
                totals=self.price(lines),
                corrected_by=corrected_by,
                customer_id=customer_id,
            )
            # Retained lines of deleted products carry no stock effect
            gone = original_ids - existing
            self._apply([line for line in lines if line.product_id not in gone], -1)
        return bill
