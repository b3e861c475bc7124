# Overview: Snapshot line-item value types and the versioned JSON codec for Bill.items.

"""
Bill line items are stored as a JSON blob inside the bills row.

SCHEMA HISTORY
- schema 1 (legacy): bare list written by earlier app releases. Each entry
  spread the whole product into the cart item:
      [{"product": {"id": "1", "productCode": "1", "nameEn": "Rice",
                    "nameTa": "...", "price": 60, "gstPercentage": 5,
                    "isGstInclusive": false, "unit": "kg", ...},
        "quantity": 2}]
- schema 2 (current): tagged envelope with integer money and explicit
  snapshot fields:
      {"schema": 2, "items": [{"product_id": 1, "product_code": "1",
        "barcode": null, "name_en": "Rice", "name_ta": "...", "unit": "kg",
        "price_cents": 6000, "tax_rate_bps": 500, "tax_inclusive": false,
        "quantity": 2}]}

decode_line_items() migrates schema 1 on read; encode_line_items() always
writes the current schema. Anything else raises DecodeError.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from decimal import InvalidOperation
from typing import Any, Iterable

from ..errors import DecodeError
from ..money import from_cents, bps_to_percent, to_cents, percent_to_bps, to_decimal

CURRENT_SCHEMA = 2


@dataclass(frozen=True)
class CartItem:
    """Ephemeral (product, quantity) pair; never persisted."""
    product_id: int
    quantity: int


@dataclass(frozen=True)
class LineItem:
    """Copy of a product's pricing fields at the moment it was billed."""
    product_id: int
    product_code: str | None
    barcode: str | None
    name_en: str
    name_ta: str
    unit: str
    price_cents: int
    tax_rate_bps: int
    tax_inclusive: bool
    quantity: int

    @classmethod
    def snapshot(cls, product, quantity: int) -> "LineItem":
        return cls(
            product_id=product.id,
            product_code=product.product_code,
            barcode=product.barcode,
            name_en=product.name_en,
            name_ta=product.name_ta,
            unit=product.unit,
            price_cents=product.price_cents,
            tax_rate_bps=product.tax_rate_bps or 0,
            tax_inclusive=bool(product.tax_inclusive),
            quantity=quantity,
        )

    @property
    def price(self):
        return from_cents(self.price_cents)

    @property
    def tax_percentage(self):
        return bps_to_percent(self.tax_rate_bps)

    @property
    def gross_cents(self) -> int:
        """Sale price times quantity, as charged at the counter."""
        return self.price_cents * self.quantity

    def tax_input(self) -> tuple:
        return (self.price, self.tax_percentage, self.tax_inclusive, self.quantity)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["tax_percentage"] = str(self.tax_percentage)
        return data


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "product_id": (int,),
    "product_code": (str, type(None)),
    "barcode": (str, type(None)),
    "name_en": (str,),
    "name_ta": (str,),
    "unit": (str,),
    "price_cents": (int,),
    "tax_rate_bps": (int,),
    "tax_inclusive": (bool,),
    "quantity": (int,),
}


def _decode_v2_item(raw: Any, index: int) -> LineItem:
    if not isinstance(raw, dict):
        raise DecodeError(f"line item {index} is not an object")
    values = {}
    for name, types in _FIELD_TYPES.items():
        if name not in raw:
            raise DecodeError(f"line item {index} is missing {name}")
        value = raw[name]
        # bool is an int subclass; only tax_inclusive may be a bool
        if isinstance(value, bool) and bool not in types:
            raise DecodeError(f"line item {index} field {name} has wrong type")
        if not isinstance(value, types):
            raise DecodeError(f"line item {index} field {name} has wrong type")
        values[name] = value
    if values["quantity"] < 0:
        raise DecodeError(f"line item {index} has negative quantity")
    return LineItem(**values)


def _legacy_id(value: Any, index: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise DecodeError(f"legacy line item {index} has non-numeric product id")


def _decode_v1_item(raw: Any, index: int) -> LineItem:
    if not isinstance(raw, dict) or not isinstance(raw.get("product"), dict):
        raise DecodeError(f"legacy line item {index} has no product")
    product = raw["product"]
    quantity = raw.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise DecodeError(f"legacy line item {index} has invalid quantity")
    name_en = product.get("nameEn")
    if not isinstance(name_en, str):
        raise DecodeError(f"legacy line item {index} has no nameEn")
    try:
        price_cents = to_cents(to_decimal(product["price"]))
        tax_rate_bps = percent_to_bps(to_decimal(product.get("gstPercentage") or 0))
    except (KeyError, InvalidOperation, TypeError, ValueError):
        raise DecodeError(f"legacy line item {index} has invalid price or tax")
    code = product.get("productCode")
    barcode = product.get("barcode")
    return LineItem(
        product_id=_legacy_id(product.get("id"), index),
        product_code=str(code) if code not in (None, "") else None,
        barcode=str(barcode) if barcode not in (None, "") else None,
        name_en=name_en,
        name_ta=str(product.get("nameTa") or ""),
        unit=str(product.get("unit") or ""),
        price_cents=price_cents,
        tax_rate_bps=tax_rate_bps,
        tax_inclusive=bool(product.get("isGstInclusive")),
        quantity=quantity,
    )


def decode_line_items(blob: str | None) -> list[LineItem]:
    if blob is None:
        raise DecodeError("bill has no line items")
    try:
        data = json.loads(blob)
    except (TypeError, ValueError):
        raise DecodeError("line items are not valid JSON")

    if isinstance(data, list):
        return [_decode_v1_item(raw, i) for i, raw in enumerate(data)]

    if not isinstance(data, dict):
        raise DecodeError("line items envelope must be an object")
    schema = data.get("schema")
    if schema != CURRENT_SCHEMA:
        raise DecodeError(f"unsupported line item schema: {schema!r}")
    items = data.get("items")
    if not isinstance(items, list):
        raise DecodeError("line items envelope has no item list")
    return [_decode_v2_item(raw, i) for i, raw in enumerate(items)]


def encode_line_items(items: Iterable[LineItem]) -> str:
    return json.dumps(
        {"schema": CURRENT_SCHEMA, "items": [asdict(item) for item in items]},
        ensure_ascii=False,
        separators=(",", ":"),
    )
