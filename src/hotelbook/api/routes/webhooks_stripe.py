"""Stripe webhook route - payment capture callbacks.

Security rules:
- Validate Stripe-Signature on every request.
- Never log payload or signature header.
- Return 5xx on processing failure (so Stripe retries).
"""

from __future__ import annotations

import os

from fastapi import APIRouter, Header, Request, Response

from hotelbook.domain.payments import PaymentNotFoundError, capture_payment
from hotelbook.observability.correlation import get_correlation_id
from hotelbook.observability.logging import get_logger
from hotelbook.observability.redaction import safe_log_context
from hotelbook.stripe.webhook import (
    InvalidPayloadError,
    InvalidSignatureError,
    verify_and_extract,
)

router = APIRouter(tags=["webhooks"])

logger = get_logger(__name__)


def _get_webhook_secret() -> str:
    secret = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    if not secret:
        raise RuntimeError("STRIPE_WEBHOOK_SECRET not configured")
    return secret


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(..., alias="Stripe-Signature"),
) -> Response:
    """Receive Stripe webhook events.

    payment_intent.succeeded captures the payment and confirms the
    reservation. Other event types are acknowledged and ignored.

    Returns:
        200 OK if processed, ignored or unknown payment.
        400 Bad Request if signature or payload invalid.
        500 Internal Server Error on configuration or processing failure.
    """
    correlation_id = get_correlation_id()
    payload_bytes = await request.body()

    try:
        webhook_secret = _get_webhook_secret()
    except RuntimeError:
        logger.error(
            "webhook secret not configured",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=500, content="server configuration error")

    try:
        event = verify_and_extract(payload_bytes, stripe_signature, webhook_secret)
    except (InvalidSignatureError, InvalidPayloadError):
        return Response(status_code=400, content="invalid webhook")

    if not event.is_capture:
        return Response(status_code=200, content="ignored")

    try:
        result = capture_payment(
            event.object_id,
            amount_received=event.amount_received,
            correlation_id=correlation_id,
        )
    except PaymentNotFoundError:
        logger.warning(
            "webhook for unknown payment",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    event_id=event.event_id,
                    transaction_id=event.object_id,
                )
            },
        )
        return Response(status_code=200, content="unknown payment")
    except Exception:
        logger.exception(
            "webhook processing failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    operation="capture_payment",
                    event_id=event.event_id,
                    transaction_id=event.object_id,
                )
            },
        )
        return Response(status_code=500, content="processing failed")

    if event.reservation_id and event.reservation_id != result["reservation_id"]:
        logger.warning(
            "webhook metadata reservation mismatch",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    event_id=event.event_id,
                    reservation_id=result["reservation_id"],
                    metadata_reservation_id=event.reservation_id,
                )
            },
        )

    logger.info(
        "stripe webhook processed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                event_id=event.event_id,
                reservation_id=result["reservation_id"],
                result=result["status"],
            )
        },
    )
    return Response(status_code=200, content=result["status"])
