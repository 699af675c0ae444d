"""Pending refunds repository - queued refund instructions.

A pending refund is written in the same transaction as the cancellation
that owes it, and executed against the gateway afterwards (immediately,
then by the retry task until it succeeds).

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from hotelbook.infra.db import fetchall, for_update

_COLUMNS = """
    id, reservation_id, payment_id, transaction_id, amount, currency,
    status, attempts, last_error, refund_id, created_at
"""


def _row_to_dict(row: tuple) -> dict[str, Any]:
    return {
        "id": str(row[0]),
        "reservation_id": str(row[1]),
        "payment_id": str(row[2]),
        "transaction_id": row[3],
        "amount": row[4],
        "currency": row[5],
        "status": row[6],
        "attempts": row[7],
        "last_error": row[8],
        "refund_id": row[9],
        "created_at": row[10],
    }


def insert_pending_refund(
    cur: PgCursor,
    *,
    reservation_id: str,
    payment_id: str,
    transaction_id: str,
    amount: Decimal,
    currency: str,
) -> str:
    """Insert a new pending refund record.

    Returns:
        UUID string of the created pending refund.
    """
    cur.execute(
        """
        INSERT INTO pending_refunds (
            reservation_id, payment_id, transaction_id, amount, currency
        )
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
        """,
        (reservation_id, payment_id, transaction_id, amount, currency),
    )
    return str(cur.fetchone()[0])


def lock_pending_refund(cur: PgCursor, refund_id: str) -> dict[str, Any] | None:
    """Lock a still-pending refund; None if missing, settled or locked elsewhere."""
    row = for_update(
        cur,
        f"SELECT {_COLUMNS} FROM pending_refunds WHERE id = %s AND status = 'pending'",
        (refund_id,),
        skip_locked=True,
    )
    return _row_to_dict(row) if row else None


def list_pending_refund_ids(cur: PgCursor, *, limit: int) -> list[str]:
    """IDs of up to `limit` pending refunds, oldest first.

    No lock is taken; each refund is locked when it is executed.
    """
    rows = fetchall(
        cur,
        """
        SELECT id
        FROM pending_refunds
        WHERE status = 'pending'
        ORDER BY created_at
        LIMIT %s
        """,
        (limit,),
    )
    return [str(row[0]) for row in rows]


def mark_refund_succeeded(cur: PgCursor, refund_id: str, *, gateway_refund_id: str) -> None:
    cur.execute(
        """
        UPDATE pending_refunds
        SET status = 'succeeded',
            refund_id = %s,
            attempts = attempts + 1,
            last_error = NULL,
            processed_at = now(),
            updated_at = now()
        WHERE id = %s
        """,
        (gateway_refund_id, refund_id),
    )


def record_refund_failure(cur: PgCursor, refund_id: str, *, error: str) -> None:
    """Count a failed attempt; the refund stays pending for the next retry."""
    cur.execute(
        """
        UPDATE pending_refunds
        SET attempts = attempts + 1,
            last_error = %s,
            updated_at = now()
        WHERE id = %s
        """,
        (error[:500], refund_id),
    )
