from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

WHOLE = Decimal("1")
CENTS = Decimal("0.01")


def round_half_up(value: Decimal, exp: Decimal = WHOLE) -> Decimal:
    return value.quantize(exp, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> Decimal:
    return round_half_up(value, CENTS)


def as_number(value: Decimal) -> float | int:
    """JSON-friendly number (ints stay ints)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
