"""Payment gateway boundary.

The booking core only needs two opaque, possibly failing operations:
charge an amount and refund (part of) a previous charge. Implementations
must raise GatewayError for every failure, including timeouts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class ChargeResult:
    transaction_id: str
    client_secret: str | None = None


class PaymentGateway(Protocol):
    def charge(
        self,
        *,
        amount: Decimal,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> ChargeResult:
        """Start a charge and return the gateway transaction ID."""
        ...

    def refund(
        self,
        *,
        transaction_id: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> str:
        """Refund `amount` of a charge and return the gateway refund ID."""
        ...


_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Process-wide gateway (Stripe unless overridden)."""
    global _gateway
    if _gateway is None:
        from hotelbook.stripe.client import StripeGateway

        _gateway = StripeGateway()
    return _gateway


def set_gateway(gateway: PaymentGateway | None) -> None:
    """Override the gateway (tests, alternative providers)."""
    global _gateway
    _gateway = gateway
