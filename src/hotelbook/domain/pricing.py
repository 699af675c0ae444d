"""Stay pricing helpers.

All amounts are Decimal with two fractional digits, rounded half-up.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize a value to currency precision (half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def count_nights(check_in: date, check_out: date) -> int:
    """Number of nights in the half-open stay [check_in, check_out)."""
    return (check_out - check_in).days


def calculate_total_price(
    price_per_night: Decimal,
    check_in: date,
    check_out: date,
    units: int,
) -> Decimal:
    """Total price = nightly rate x nights x units."""
    nights = count_nights(check_in, check_out)
    return to_money(Decimal(price_per_night) * nights * units)


def to_minor_units(amount: Decimal) -> int:
    """Convert a two-digit decimal amount to integer cents for the gateway."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(cents: int) -> Decimal:
    return to_money(Decimal(cents) / 100)
