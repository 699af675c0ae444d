"""Outbox repository - domain events for asynchronous notification delivery.

Events are written in the same transaction as the change they describe.
Delivery (email, push) reads the outbox separately, so a notification
failure can never undo a booking.

Uses raw SQL with psycopg2 (no ORM).
"""

import json

from psycopg2.extensions import cursor as PgCursor

RESERVATION_CREATED = "RESERVATION_CREATED"
RESERVATION_CANCELLED = "RESERVATION_CANCELLED"
REFUND_SUCCEEDED = "REFUND_SUCCEEDED"

STATUS_EVENTS = {
    "confirmed": "RESERVATION_CONFIRMED",
    "checked_in": "RESERVATION_CHECKED_IN",
    "checked_out": "RESERVATION_CHECKED_OUT",
    "cancelled": RESERVATION_CANCELLED,
}


def emit_event(
    cur: PgCursor,
    *,
    event_type: str,
    aggregate_type: str,
    aggregate_id: str,
    payload: dict | None = None,
    correlation_id: str | None = None,
) -> int:
    """Emit an event to the outbox.

    Args:
        cur: Database cursor (within transaction).
        event_type: Event type (e.g., RESERVATION_CREATED).
        aggregate_type: Aggregate type (e.g., reservation).
        aggregate_id: Aggregate ID (e.g., reservation UUID).
        payload: Optional JSON payload (no PII).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        The generated event ID.
    """
    payload_json = json.dumps(payload, default=str) if payload else None

    cur.execute(
        """
        INSERT INTO outbox_events (
            event_type, aggregate_type, aggregate_id, payload, correlation_id
        )
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
        """,
        (
            event_type,
            aggregate_type,
            aggregate_id,
            payload_json,
            correlation_id,
        ),
    )
    return cur.fetchone()[0]


def emit_reservation_event(
    cur: PgCursor,
    *,
    event_type: str,
    reservation_id: str,
    payload: dict | None = None,
    correlation_id: str | None = None,
) -> int:
    return emit_event(
        cur,
        event_type=event_type,
        aggregate_type="reservation",
        aggregate_id=reservation_id,
        payload=payload,
        correlation_id=correlation_id,
    )
