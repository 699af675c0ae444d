"""Room availability - inventory checks over half-open date ranges.

Overlap formula:  (a_checkin < b_checkout) AND (b_checkin < a_checkout)
Strict inequality allows check-out day == check-in day (same-day turnover).

Every reservation that is not cancelled consumes inventory, including
'pending' ones whose payment is still in flight, so a room is never sold
twice while a payment settles.
"""

from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from typing import Iterable

from psycopg2.extensions import cursor as PgCursor

from hotelbook.domain.errors import DateRangeInvalidError, RoomNotFoundError
from hotelbook.domain.models import AvailabilityResult, Room
from hotelbook.infra.db import txn
from hotelbook.infra.repositories.reservations_repository import list_overlapping_units
from hotelbook.infra.repositories.rooms_repository import get_room
from hotelbook.infra.time import utc_today

logger = logging.getLogger(__name__)

DEFAULT_MAX_STAY_NIGHTS = 30


def max_stay_nights() -> int:
    """Longest bookable stay, from BOOKING_MAX_STAY_NIGHTS."""
    return int(os.environ.get("BOOKING_MAX_STAY_NIGHTS", DEFAULT_MAX_STAY_NIGHTS))


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open interval overlap of [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def validate_range(check_in: date, check_out: date) -> None:
    """Raise DateRangeInvalidError unless check_in < check_out."""
    if check_out <= check_in:
        raise DateRangeInvalidError("check_out must be after check_in")


def validate_stay_dates(
    check_in: date,
    check_out: date,
    *,
    today: date | None = None,
) -> None:
    """Validate dates for a new reservation.

    Raises:
        DateRangeInvalidError: check-out not after check-in, check-in in the
            past, or stay longer than the configured maximum.
    """
    validate_range(check_in, check_out)

    if check_in < (today or utc_today()):
        raise DateRangeInvalidError("check_in cannot be in the past")

    limit = max_stay_nights()
    if (check_out - check_in).days > limit:
        raise DateRangeInvalidError(f"Maximum stay is {limit} nights")


def count_units_booked(
    bookings: Iterable[tuple[str, date, date, int]],
    check_in: date,
    check_out: date,
) -> int:
    """Sum units of bookings overlapping [check_in, check_out).

    Args:
        bookings: (reservation_id, check_in, check_out, units) tuples of
            non-cancelled reservations.
    """
    return sum(
        units
        for _, start, end, units in bookings
        if ranges_overlap(start, end, check_in, check_out)
    )


def availability_for_room(
    cur: PgCursor,
    room: Room,
    *,
    check_in: date,
    check_out: date,
    units: int = 1,
) -> AvailabilityResult:
    """Compute availability of an already-resolved room.

    Runs on the caller's cursor so reservation creation can check and
    insert inside one transaction while holding the room lock.
    """
    validate_range(check_in, check_out)
    if units < 1:
        raise ValueError("units must be at least 1")

    bookings = list_overlapping_units(
        cur,
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
    )
    result = AvailabilityResult(
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        units_requested=units,
        units_booked=count_units_booked(bookings, check_in, check_out),
        total_inventory=room.total_inventory,
    )

    logger.debug(
        "availability computed",
        extra={
            "extra_fields": {
                "room_id": room.id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "units_requested": units,
                "units_free": result.units_free,
                "overlapping_reservations": len(bookings),
            },
        },
    )
    return result


def check_availability(
    room_id: str,
    check_in: date,
    check_out: date,
    units: int = 1,
    *,
    cur: PgCursor | None = None,
) -> AvailabilityResult:
    """Check whether `units` of a room are free for [check_in, check_out).

    Pure read. Opens its own transaction unless a cursor is given.

    Raises:
        DateRangeInvalidError: If check_in >= check_out.
        ValueError: If units < 1.
        RoomNotFoundError: If the room does not resolve.
    """
    validate_range(check_in, check_out)
    if units < 1:
        raise ValueError("units must be at least 1")

    def _do(c: PgCursor) -> AvailabilityResult:
        room = get_room(c, room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return availability_for_room(c, room, check_in=check_in, check_out=check_out, units=units)

    if cur is not None:
        return _do(cur)
    with txn() as c:
        return _do(c)


def availability_calendar(
    room_id: str,
    start: date,
    end: date,
    *,
    cur: PgCursor | None = None,
) -> list[dict]:
    """Free units for each night in [start, end).

    Unlike check_availability, which sums every reservation touching the
    range, this counts only reservations occupying each individual night.

    Raises:
        DateRangeInvalidError: If start >= end or the window exceeds the max stay.
        RoomNotFoundError: If the room does not resolve.
    """
    validate_range(start, end)
    if (end - start).days > max_stay_nights():
        raise DateRangeInvalidError(f"Calendar window is limited to {max_stay_nights()} nights")

    def _do(c: PgCursor) -> list[dict]:
        room = get_room(c, room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        bookings = list_overlapping_units(c, room_id=room_id, check_in=start, check_out=end)

        nights = []
        night = start
        while night < end:
            booked = count_units_booked(bookings, night, night + timedelta(days=1))
            free = max(room.total_inventory - booked, 0)
            nights.append(
                {"date": night.isoformat(), "units_free": free, "available": free > 0}
            )
            night += timedelta(days=1)
        return nights

    if cur is not None:
        return _do(cur)
    with txn() as c:
        return _do(c)
