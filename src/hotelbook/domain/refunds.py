"""Cancellation refund policy.

Tiered by time remaining before check-in:
- more than 7 days:      full refund
- more than 72 hours:    50%
- 72 hours or less:      nothing (including cancellations after check-in)
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal

from hotelbook.domain.pricing import to_money

FULL_REFUND_HOURS = 7 * 24
PARTIAL_REFUND_HOURS = 72
PARTIAL_REFUND_RATE = Decimal("0.50")


def check_in_instant(check_in: date | datetime) -> datetime:
    """Start of the check-in day in UTC (aware datetimes pass through)."""
    if isinstance(check_in, datetime):
        if check_in.tzinfo is None:
            return check_in.replace(tzinfo=timezone.utc)
        return check_in
    return datetime.combine(check_in, time.min, tzinfo=timezone.utc)


def hours_until_check_in(check_in: date | datetime, cancelled_at: datetime) -> float:
    if cancelled_at.tzinfo is None:
        cancelled_at = cancelled_at.replace(tzinfo=timezone.utc)
    return (check_in_instant(check_in) - cancelled_at).total_seconds() / 3600


def refund_rate(hours: float) -> Decimal:
    """Fraction of the total price refunded when cancelling `hours` before check-in."""
    if hours > FULL_REFUND_HOURS:
        return Decimal("1")
    if hours > PARTIAL_REFUND_HOURS:
        return PARTIAL_REFUND_RATE
    return Decimal("0")


def calculate_refund(
    total_price: Decimal,
    check_in: date | datetime,
    cancelled_at: datetime,
) -> Decimal:
    """Refund owed for a cancellation at `cancelled_at`.

    Args:
        total_price: Reservation total (two fractional digits).
        check_in: Check-in date (midnight UTC) or exact instant.
        cancelled_at: When the cancellation happened. Naive values are UTC.

    Returns:
        Refund amount rounded half-up to cents.
    """
    hours = hours_until_check_in(check_in, cancelled_at)
    return to_money(Decimal(total_price) * refund_rate(hours))
