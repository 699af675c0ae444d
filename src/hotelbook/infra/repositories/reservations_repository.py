"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM). Reservations are never deleted;
cancellation is a status.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from hotelbook.domain.models import Reservation
from hotelbook.domain.statuses import BookingStatus
from hotelbook.infra.db import fetchall, fetchone, for_update

RESERVATION_COLUMNS = """
    id, room_id, requester_id, check_in, check_out, guests, units,
    total_price, currency, status, cancellation_reason, cancelled_at,
    cancelled_by, refund_amount, created_at, updated_at
"""


def row_to_reservation(row: tuple) -> Reservation:
    return Reservation(
        id=str(row[0]),
        room_id=str(row[1]),
        requester_id=str(row[2]),
        check_in=row[3],
        check_out=row[4],
        guests=row[5],
        units=row[6],
        total_price=row[7],
        currency=row[8],
        status=BookingStatus(row[9]),
        cancellation_reason=row[10],
        cancelled_at=row[11],
        cancelled_by=row[12],
        refund_amount=row[13],
        created_at=row[14],
        updated_at=row[15],
    )


def get_reservation(
    cur: PgCursor,
    reservation_id: str,
    *,
    lock: bool = False,
) -> Reservation | None:
    """Fetch a reservation by ID, optionally locking the row (FOR UPDATE)."""
    query = f"SELECT {RESERVATION_COLUMNS} FROM reservations WHERE id = %s"
    if lock:
        row = for_update(cur, query, (reservation_id,))
    else:
        row = fetchone(cur, query, (reservation_id,))
    if row is None:
        return None
    return row_to_reservation(row)


def list_overlapping_units(
    cur: PgCursor,
    *,
    room_id: str,
    check_in: date,
    check_out: date,
) -> list[tuple[str, date, date, int]]:
    """List non-cancelled reservations of a room overlapping [check_in, check_out).

    Half-open overlap: existing.check_in < new.check_out AND
    existing.check_out > new.check_in, so a stay ending on the day another
    starts is not returned.

    Returns:
        List of (reservation_id, check_in, check_out, units) tuples.
    """
    rows = fetchall(
        cur,
        """
        SELECT id, check_in, check_out, units
        FROM reservations
        WHERE room_id = %s
          AND status <> 'cancelled'
          AND check_in < %s
          AND check_out > %s
        ORDER BY check_in
        """,
        (room_id, check_out, check_in),
    )
    return [(str(row[0]), row[1], row[2], row[3]) for row in rows]


def insert_reservation(
    cur: PgCursor,
    *,
    room_id: str,
    requester_id: str,
    check_in: date,
    check_out: date,
    guests: int,
    units: int,
    total_price: Decimal,
    currency: str,
) -> Reservation:
    """Insert a new reservation in 'pending' status.

    Args:
        cur: Database cursor (within transaction).

    Returns:
        The created reservation.
    """
    cur.execute(
        f"""
        INSERT INTO reservations (
            room_id, requester_id, check_in, check_out,
            guests, units, total_price, currency, status
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'pending')
        RETURNING {RESERVATION_COLUMNS}
        """,
        (
            room_id,
            requester_id,
            check_in,
            check_out,
            guests,
            units,
            total_price,
            currency,
        ),
    )
    return row_to_reservation(cur.fetchone())


def update_status(
    cur: PgCursor,
    reservation_id: str,
    status: BookingStatus,
) -> Reservation:
    """Set a new status (caller has validated the transition)."""
    cur.execute(
        f"""
        UPDATE reservations
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {RESERVATION_COLUMNS}
        """,
        (status.value, reservation_id),
    )
    return row_to_reservation(cur.fetchone())


def mark_cancelled(
    cur: PgCursor,
    reservation_id: str,
    *,
    reason: str | None,
    cancelled_by: str,
    cancelled_at: datetime,
    refund_amount: Decimal,
) -> Reservation:
    """Move a reservation to 'cancelled' and record the cancellation metadata."""
    cur.execute(
        f"""
        UPDATE reservations
        SET status = 'cancelled',
            cancellation_reason = %s,
            cancelled_by = %s,
            cancelled_at = %s,
            refund_amount = %s,
            updated_at = now()
        WHERE id = %s
        RETURNING {RESERVATION_COLUMNS}
        """,
        (reason, cancelled_by, cancelled_at, refund_amount, reservation_id),
    )
    return row_to_reservation(cur.fetchone())
