# Overview: Pure tax arithmetic for line items and carts; no database access.

"""
Tax Engine

Inclusive price:  base = price / (1 + rate/100); tax = price - base; total = price
Exclusive price:  tax = price * rate/100;        base = price;       total = price + tax

ROUNDING ORDER:
- compute_line() rounds base and total half-up to 2 places; tax is their
  difference, so base_price + tax_amount == line_total.
- compute_cart() accumulates unrounded per-unit amounts times quantity across
  all lines, rounds subtotal and tax once each, and only then adds them.
  total == subtotal + tax_amount exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from ..errors import InvalidInput
from ..money import HUNDRED, round2, to_decimal, to_cents


@dataclass(frozen=True)
class TaxLine:
    base_price: Decimal
    tax_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    round_off: Decimal
    grand_total: Decimal

    @property
    def subtotal_cents(self) -> int:
        return to_cents(self.subtotal)

    @property
    def tax_cents(self) -> int:
        return to_cents(self.tax_amount)

    @property
    def round_off_cents(self) -> int:
        return to_cents(self.round_off)

    @property
    def grand_total_cents(self) -> int:
        return to_cents(self.grand_total)


def _checked(price, tax_pct) -> tuple[Decimal, Decimal]:
    try:
        price_d = to_decimal(price)
        pct_d = to_decimal(tax_pct)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput("price and tax percentage must be numbers")
    if not price_d.is_finite() or not pct_d.is_finite():
        raise InvalidInput("price and tax percentage must be finite")
    if pct_d < 0:
        raise InvalidInput("tax percentage must be >= 0", details={"tax_percentage": str(pct_d)})
    if price_d < 0:
        raise InvalidInput("price must be >= 0", details={"price": str(price_d)})
    return price_d, pct_d


def _split(price: Decimal, tax_pct: Decimal, inclusive: bool) -> tuple[Decimal, Decimal, Decimal]:
    """Unrounded (base, tax, total) for one unit."""
    if inclusive:
        base = price / (1 + tax_pct / HUNDRED)
        return base, price - base, price
    tax = price * tax_pct / HUNDRED
    return price, tax, price + tax


def compute_line(price, tax_pct, inclusive: bool) -> TaxLine:
    """Base price, tax and total for one unit, rounded to 2 places."""
    price_d, pct_d = _checked(price, tax_pct)
    base, _, total = _split(price_d, pct_d, bool(inclusive))
    base_r, total_r = round2(base), round2(total)
    return TaxLine(base_price=base_r, tax_amount=total_r - base_r, line_total=total_r)


def round_off(total: Decimal, unit_cents: int) -> Decimal:
    """
    Adjustment that moves `total` to the nearest multiple of `unit_cents`
    (half-up). 0 disables round-off.
    """
    if unit_cents < 0:
        raise InvalidInput("round-off unit must be >= 0")
    if unit_cents == 0:
        return Decimal("0.00")
    unit = Decimal(unit_cents) / HUNDRED
    target = (total / unit).quantize(Decimal(1), rounding=ROUND_HALF_UP) * unit
    return round2(target - total)


def compute_cart(lines: Iterable[tuple[object, object, bool, int]], *, round_off_unit_cents: int = 0) -> CartTotals:
    """
    Totals for (price, tax_pct, inclusive, quantity) tuples.

    grand_total = round2(round2(subtotal) + round2(tax) + round_off)
    """
    subtotal = Decimal(0)
    tax_amount = Decimal(0)
    for price, tax_pct, inclusive, quantity in lines:
        price_d, pct_d = _checked(price, tax_pct)
        if quantity < 0:
            raise InvalidInput("quantity must be >= 0")
        base, tax, _ = _split(price_d, pct_d, bool(inclusive))
        subtotal += base * quantity
        tax_amount += tax * quantity

    subtotal_r = round2(subtotal)
    tax_r = round2(tax_amount)
    total = subtotal_r + tax_r
    adjustment = round_off(total, round_off_unit_cents)
    return CartTotals(
        subtotal=subtotal_r,
        tax_amount=tax_r,
        total=total,
        round_off=adjustment,
        grand_total=round2(total + adjustment),
    )
