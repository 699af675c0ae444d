"""Thin wrapper around Stripe SDK.

Purpose:
- Encapsulate Stripe API calls so domain code doesn't import stripe.* directly.
- Accept idempotency_key for safe retries.
- Translate every Stripe failure into GatewayError.
- Never log full Stripe payloads (only IDs + correlation metadata).
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal

import stripe

from hotelbook.domain.errors import GatewayError
from hotelbook.domain.gateway import ChargeResult
from hotelbook.domain.pricing import to_minor_units

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10


class StripeGateway:
    """PaymentIntent-based gateway.

    Usage:
        gateway = StripeGateway()  # reads STRIPE_SECRET_KEY from env
        charge = gateway.charge(
            amount=Decimal("200.00"),
            currency="usd",
            metadata={"reservation_id": "..."},
            idempotency_key="reservation:abc123:charge",
        )
    """

    def __init__(self, api_key: str | None = None, *, timeout: float | None = None) -> None:
        """Initialize the Stripe client.

        Args:
            api_key: Stripe secret key. Defaults to STRIPE_SECRET_KEY env var.
            timeout: Request timeout in seconds. Defaults to STRIPE_TIMEOUT_SECONDS.

        Raises:
            RuntimeError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("STRIPE_SECRET_KEY")
        if not self._api_key:
            raise RuntimeError(
                "Stripe API key not provided. "
                "Set STRIPE_SECRET_KEY or pass api_key parameter."
            )
        if timeout is None:
            timeout = float(os.environ.get("STRIPE_TIMEOUT_SECONDS", _DEFAULT_TIMEOUT_SECONDS))
        self._timeout = timeout

    def _client(self) -> stripe.StripeClient:
        return stripe.StripeClient(
            self._api_key,
            http_client=stripe.RequestsClient(timeout=self._timeout),
        )

    def charge(
        self,
        *,
        amount: Decimal,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> ChargeResult:
        """Create a PaymentIntent for the reservation total.

        Raises:
            GatewayError: On any Stripe failure.
        """
        params = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        try:
            intent = self._client().v1.payment_intents.create(
                params=params,
                options={"idempotency_key": idempotency_key},
            )
        except stripe.StripeError as exc:
            logger.warning(
                "stripe_charge_failed",
                extra={
                    "extra_fields": {
                        "reservation_id": metadata.get("reservation_id"),
                        "error": type(exc).__name__,
                    }
                },
            )
            raise GatewayError("Payment gateway charge failed", operation="charge", amount=amount) from exc

        logger.info(
            "stripe_payment_intent_created",
            extra={
                "extra_fields": {
                    "payment_intent_id": intent.id,
                    "reservation_id": metadata.get("reservation_id"),
                }
            },
        )
        return ChargeResult(transaction_id=intent.id, client_secret=intent.client_secret)

    def refund(
        self,
        *,
        transaction_id: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> str:
        """Refund part or all of a PaymentIntent.

        Raises:
            GatewayError: On any Stripe failure.
        """
        try:
            refund = self._client().v1.refunds.create(
                params={
                    "payment_intent": transaction_id,
                    "amount": to_minor_units(amount),
                },
                options={"idempotency_key": idempotency_key},
            )
        except stripe.StripeError as exc:
            logger.warning(
                "stripe_refund_failed",
                extra={
                    "extra_fields": {
                        "payment_intent_id": transaction_id,
                        "error": type(exc).__name__,
                    }
                },
            )
            raise GatewayError("Payment gateway refund failed", operation="refund", amount=amount) from exc

        logger.info(
            "stripe_refund_created",
            extra={"extra_fields": {"payment_intent_id": transaction_id, "refund_id": refund.id}},
        )
        return refund.id
