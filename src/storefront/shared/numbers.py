"""Rounding helpers for money and ratings.

Amounts are stored as floats (Protean ``Float`` fields) but rounded half-up
through ``Decimal`` so that 2.675 becomes 2.68 rather than 2.67.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")
_TENTH = Decimal("0.1")


def round_money(amount) -> float:
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_rating(value) -> float:
    return float(Decimal(str(value)).quantize(_TENTH, rounding=ROUND_HALF_UP))
