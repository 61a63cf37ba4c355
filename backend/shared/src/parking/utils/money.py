"""Decimal helpers for currency amounts.

Models carry amounts as floats; arithmetic converts through str() so that
0.1 stays 0.1 instead of its binary expansion.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Convert a model amount to Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
