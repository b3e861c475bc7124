"""
Conversions between persisted integers and Decimal amounts.

Money is stored in minor units (cents) and tax rates in basis points
(500 = 5%). Arithmetic happens on Decimal, rounded half-up to 2 places.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
HUNDRED = Decimal(100)


def to_decimal(value) -> Decimal:
    """Floats go through str() so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation("boolean is not a number")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int(round2(value) * HUNDRED)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / HUNDRED).quantize(CENT)


def percent_to_bps(value) -> int:
    return int((to_decimal(value) * HUNDRED).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def bps_to_percent(bps: int) -> Decimal:
    return (Decimal(bps) / HUNDRED).quantize(CENT)
