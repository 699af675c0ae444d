"""Payments repository - one payment record per reservation.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from hotelbook.infra.db import fetchone, for_update

PROVIDER_STRIPE = "stripe"

_PAYMENT_COLUMNS = """
    id, reservation_id, provider, transaction_id, status,
    amount, currency, refunded_amount, refund_id
"""


def _row_to_dict(row: tuple) -> dict[str, Any]:
    return {
        "id": str(row[0]),
        "reservation_id": str(row[1]),
        "provider": row[2],
        "transaction_id": row[3],
        "status": row[4],
        "amount": row[5],
        "currency": row[6],
        "refunded_amount": row[7],
        "refund_id": row[8],
    }


def insert_payment(
    cur: PgCursor,
    *,
    reservation_id: str,
    amount: Decimal,
    currency: str,
    transaction_id: str,
    provider: str = PROVIDER_STRIPE,
) -> str:
    """Insert the payment for a reservation in 'authorized' status.

    Returns:
        UUID string of the created payment.
    """
    cur.execute(
        """
        INSERT INTO payments (
            reservation_id, provider, transaction_id, status, amount, currency
        )
        VALUES (%s, %s, %s, 'authorized', %s, %s)
        RETURNING id
        """,
        (reservation_id, provider, transaction_id, amount, currency),
    )
    return str(cur.fetchone()[0])


def get_payment_for_reservation(
    cur: PgCursor,
    reservation_id: str,
) -> dict[str, Any] | None:
    cur.execute(
        f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE reservation_id = %s",
        (reservation_id,),
    )
    row = cur.fetchone()
    return _row_to_dict(row) if row else None


def get_payment_by_transaction(
    cur: PgCursor,
    transaction_id: str,
    *,
    lock: bool = False,
) -> dict[str, Any] | None:
    """Fetch a payment by gateway transaction ID."""
    query = f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE transaction_id = %s"
    if lock:
        row = for_update(cur, query, (transaction_id,))
    else:
        row = fetchone(cur, query, (transaction_id,))
    return _row_to_dict(row) if row else None


def mark_captured(cur: PgCursor, payment_id: str) -> None:
    cur.execute(
        """
        UPDATE payments
        SET status = 'captured', captured_at = now(), updated_at = now()
        WHERE id = %s
        """,
        (payment_id,),
    )


def record_refund(
    cur: PgCursor,
    payment_id: str,
    *,
    amount: Decimal,
    refund_id: str,
) -> None:
    """Record a refund executed by the gateway against a payment."""
    cur.execute(
        """
        UPDATE payments
        SET status = 'refunded',
            refunded_amount = COALESCE(refunded_amount, 0) + %s,
            refund_id = %s,
            refunded_at = now(),
            updated_at = now()
        WHERE id = %s
        """,
        (amount, refund_id, payment_id),
    )
