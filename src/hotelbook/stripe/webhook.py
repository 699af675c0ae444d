"""Stripe webhook verification.

Only payment_intent.* events matter to the booking core; everything the
route needs is pulled into a PaymentIntentEvent so the raw payload never
travels further (or into logs).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import stripe

from hotelbook.domain.pricing import from_minor_units

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class InvalidSignatureError(Exception):
    """Stripe-Signature did not match the endpoint secret."""


class InvalidPayloadError(Exception):
    """Body is not a Stripe event or lacks id/type."""


@dataclass(frozen=True)
class PaymentIntentEvent:
    event_id: str
    event_type: str
    # payment_intent id, i.e. our payments.transaction_id
    object_id: str | None
    reservation_id: str | None = None
    amount_received: Decimal | None = None

    @property
    def is_capture(self) -> bool:
        return self.event_type == PAYMENT_SUCCEEDED and bool(self.object_id)


def verify_and_extract(
    payload_bytes: bytes,
    signature_header: str,
    webhook_secret: str,
) -> PaymentIntentEvent:
    """Check the signature and reduce the event to what capture needs.

    Raises:
        InvalidSignatureError: Signature check failed.
        InvalidPayloadError: Unparseable body or missing id/type.
    """
    try:
        payload = payload_bytes.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            payload,
            signature_header,
            webhook_secret,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe webhook signature verification failed")
        raise InvalidSignatureError("Invalid signature") from e
    except ValueError as e:
        logger.warning("stripe webhook payload decoding failed")
        raise InvalidPayloadError("Invalid payload") from e

    # Plain dicts: StripeObject is not a dict on every SDK release.
    try:
        event = json.loads(payload)
    except ValueError as e:
        logger.warning("stripe webhook payload parsing failed")
        raise InvalidPayloadError("Invalid payload") from e
    if not isinstance(event, dict):
        raise InvalidPayloadError("Event is not an object")

    event_id = event.get("id")
    event_type = event.get("type")
    if not event_id or not event_type:
        raise InvalidPayloadError("Missing event id or type")

    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        obj = {}
    return PaymentIntentEvent(
        event_id=event_id,
        event_type=event_type,
        object_id=obj.get("id"),
        reservation_id=_metadata_value(obj, "reservation_id"),
        amount_received=_amount_received(obj),
    )


def _metadata_value(obj: dict[str, Any], key: str) -> str | None:
    metadata = obj.get("metadata") or {}
    value = metadata.get(key)
    return str(value) if value else None


def _amount_received(obj: dict[str, Any]) -> Decimal | None:
    amount = obj.get("amount_received")
    if amount is None:
        return None
    return from_minor_units(int(amount))
