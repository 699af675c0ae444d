"""Payment domain logic.

Handles the gateway side of a reservation after creation:
- capture_payment(): gateway callback, confirms a pending reservation
- process_pending_refund(): executes one queued refund
- retry_pending_refunds(): reconciliation pass over every queued refund
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from hotelbook.domain.errors import GatewayError
from hotelbook.domain.gateway import PaymentGateway, get_gateway
from hotelbook.domain.statuses import SYSTEM_ACTOR, BookingStatus, ensure_transition
from hotelbook.infra.db import txn
from hotelbook.infra.repositories import reservations_repository as reservations
from hotelbook.infra.repositories.outbox_repository import (
    REFUND_SUCCEEDED,
    STATUS_EVENTS,
    emit_reservation_event,
)
from hotelbook.infra.repositories.payments_repository import (
    get_payment_by_transaction,
    mark_captured,
    record_refund,
)
from hotelbook.infra.repositories.pending_refunds_repository import (
    insert_pending_refund,
    list_pending_refund_ids,
    lock_pending_refund,
    mark_refund_succeeded,
    record_refund_failure,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_BATCH = 50


class PaymentNotFoundError(Exception):
    """No payment matches the gateway transaction ID."""


def capture_payment(
    transaction_id: str,
    *,
    amount_received: Decimal | None = None,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Record a captured payment and confirm its reservation.

    Idempotent: a repeated callback for an already captured payment is a no-op.
    A capture that arrives after the guest cancelled queues a full refund,
    since the cancellation already refunded nothing for an uncaptured payment.

    A received amount that differs from the recorded payment is logged;
    the capture still proceeds.

    Returns:
        {"status": "confirmed" | "already_captured" | "refund_queued" | "captured",
         "reservation_id": str, "pending_refund_id": str | None}

    Raises:
        PaymentNotFoundError: Unknown transaction ID.
    """
    with txn() as cur:
        payment = get_payment_by_transaction(cur, transaction_id, lock=True)
        if payment is None:
            raise PaymentNotFoundError(f"Payment {transaction_id} not found")

        if amount_received is not None and amount_received != payment["amount"]:
            logger.warning(
                "captured amount differs from payment",
                extra={
                    "extra_fields": {
                        "reservation_id": payment["reservation_id"],
                        "transaction_id": transaction_id,
                        "expected": str(payment["amount"]),
                        "received": str(amount_received),
                    },
                },
            )

        reservation_id = payment["reservation_id"]
        result: dict[str, Any] = {
            "status": "already_captured",
            "reservation_id": reservation_id,
            "pending_refund_id": None,
        }
        if payment["status"] in ("captured", "refunded"):
            return result

        mark_captured(cur, payment["id"])

        reservation = reservations.get_reservation(cur, reservation_id, lock=True)
        if reservation.status == BookingStatus.PENDING:
            status = ensure_transition(
                reservation.status, BookingStatus.CONFIRMED, booking_id=reservation_id
            )
            reservations.update_status(cur, reservation_id, status)
            emit_reservation_event(
                cur,
                event_type=STATUS_EVENTS[status.value],
                reservation_id=reservation_id,
                payload={
                    "from_status": reservation.status.value,
                    "to_status": status.value,
                    "actor_id": SYSTEM_ACTOR.id,
                },
                correlation_id=correlation_id,
            )
            result["status"] = "confirmed"
        elif reservation.status == BookingStatus.CANCELLED:
            result["pending_refund_id"] = insert_pending_refund(
                cur,
                reservation_id=reservation_id,
                payment_id=payment["id"],
                transaction_id=transaction_id,
                amount=payment["amount"],
                currency=payment["currency"],
            )
            result["status"] = "refund_queued"
        else:
            result["status"] = "captured"

    logger.info(
        "payment captured",
        extra={
            "extra_fields": {
                "reservation_id": reservation_id,
                "transaction_id": transaction_id,
                "result": result["status"],
            },
        },
    )
    return result


def _execute_refund(cur: PgCursor, refund: dict[str, Any], gateway: PaymentGateway) -> bool:
    """Call the gateway for a locked pending refund and record the outcome."""
    try:
        gateway_refund_id = gateway.refund(
            transaction_id=refund["transaction_id"],
            amount=refund["amount"],
            idempotency_key=f"pending_refund:{refund['id']}",
        )
    except GatewayError as exc:
        record_refund_failure(cur, refund["id"], error=str(exc))
        logger.warning(
            "refund failed, left queued",
            extra={
                "extra_fields": {
                    "pending_refund_id": refund["id"],
                    "reservation_id": refund["reservation_id"],
                    "attempts": refund["attempts"] + 1,
                },
            },
        )
        return False

    mark_refund_succeeded(cur, refund["id"], gateway_refund_id=gateway_refund_id)
    record_refund(cur, refund["payment_id"], amount=refund["amount"], refund_id=gateway_refund_id)
    emit_reservation_event(
        cur,
        event_type=REFUND_SUCCEEDED,
        reservation_id=refund["reservation_id"],
        payload={"amount": str(refund["amount"]), "currency": refund["currency"]},
    )
    return True


def _run_refund(refund_id: str, gateway: PaymentGateway) -> bool | None:
    """Lock and execute one refund in its own transaction; None if skipped."""
    with txn() as cur:
        refund = lock_pending_refund(cur, refund_id)
        if refund is None:
            return None
        return _execute_refund(cur, refund, gateway)


def process_pending_refund(refund_id: str, *, gateway: PaymentGateway) -> bool:
    """Execute one queued refund.

    Returns:
        True if the gateway refunded it; False if it failed (still queued)
        or was already settled / being processed by another worker.
    """
    return bool(_run_refund(refund_id, gateway))


def retry_pending_refunds(
    limit: int | None = None,
    *,
    gateway: PaymentGateway | None = None,
) -> dict[str, int]:
    """Reconciliation pass: retry queued refunds, oldest first.

    Each refund commits on its own, so an unexpected error on one refund
    does not undo the bookkeeping of refunds already paid in the batch.
    Such an error counts as a failure and the pass continues. Refunds locked
    by a concurrent pass or settled since listing are skipped. Gateway
    idempotency keys are derived from the pending refund ID, so a retry
    after a lost response never refunds twice.

    Returns:
        {"processed": n, "succeeded": n, "failed": n}
    """
    if limit is None:
        limit = int(os.environ.get("REFUND_RETRY_BATCH", DEFAULT_RETRY_BATCH))
    gateway = gateway or get_gateway()

    with txn() as cur:
        refund_ids = list_pending_refund_ids(cur, limit=limit)

    succeeded = failed = 0
    for refund_id in refund_ids:
        try:
            outcome = _run_refund(refund_id, gateway)
        except Exception:
            logger.exception(
                "refund retry errored, left queued",
                extra={"extra_fields": {"pending_refund_id": refund_id}},
            )
            failed += 1
            continue
        if outcome is None:
            continue
        if outcome:
            succeeded += 1
        else:
            failed += 1

    summary = {"processed": succeeded + failed, "succeeded": succeeded, "failed": failed}
    logger.info("pending refunds retried", extra={"extra_fields": summary})
    return summary
