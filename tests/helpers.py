"""Shared test helper functions for hotelbook tests.

Plain functions and fakes importable by conftest.py and test modules;
no fixtures here.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from decimal import Decimal
from itertools import count

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hotelbook.domain.errors import GatewayError
from hotelbook.domain.gateway import ChargeResult
from hotelbook.domain.models import Reservation, Room
from hotelbook.domain.statuses import BookingStatus

TEST_ISSUER = "https://auth.example.com"
TEST_AUDIENCE = "hotelbook-api"


class FakeGateway:
    """In-memory PaymentGateway recording every call."""

    def __init__(
        self,
        *,
        fail_charge: bool = False,
        fail_refund: bool = False,
        tx_prefix: str = "pi_test",
    ):
        self.tx_prefix = tx_prefix
        self.fail_charge = fail_charge
        self.fail_refund = fail_refund
        self.charges: list[dict] = []
        self.refunds: list[dict] = []
        self._ids = count(1)

    def charge(self, *, amount, currency, metadata, idempotency_key):
        self.charges.append(
            {
                "amount": amount,
                "currency": currency,
                "metadata": metadata,
                "idempotency_key": idempotency_key,
            }
        )
        if self.fail_charge:
            raise GatewayError("card declined", operation="charge", amount=amount)
        n = next(self._ids)
        tx = f"{self.tx_prefix}_{n}"
        return ChargeResult(transaction_id=tx, client_secret=f"{tx}_secret")

    def refund(self, *, transaction_id, amount, idempotency_key):
        self.refunds.append(
            {
                "transaction_id": transaction_id,
                "amount": amount,
                "idempotency_key": idempotency_key,
            }
        )
        if self.fail_refund:
            raise GatewayError("gateway timeout", operation="refund", amount=amount)
        return f"re_test_{next(self._ids)}"


def make_room(**overrides) -> Room:
    fields = {
        "id": "room-1",
        "name": "Deluxe Double",
        "capacity": 2,
        "total_inventory": 1,
        "price_per_night": Decimal("100.00"),
        "currency": "USD",
        "is_active": True,
    }
    fields.update(overrides)
    return Room(**fields)


def make_reservation(**overrides) -> Reservation:
    fields = {
        "id": "11111111-1111-1111-1111-111111111111",
        "room_id": "room-1",
        "requester_id": "guest-1",
        "check_in": date(2030, 3, 1),
        "check_out": date(2030, 3, 3),
        "guests": 2,
        "units": 1,
        "total_price": Decimal("200.00"),
        "currency": "USD",
        "status": BookingStatus.PENDING,
        "created_at": datetime(2030, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return Reservation(**fields)


def make_payment(**overrides) -> dict:
    payment = {
        "id": "pay-1",
        "reservation_id": "11111111-1111-1111-1111-111111111111",
        "provider": "stripe",
        "transaction_id": "pi_test_1",
        "status": "authorized",
        "amount": Decimal("200.00"),
        "currency": "USD",
        "refunded_amount": None,
        "refund_id": None,
    }
    payment.update(overrides)
    return payment


def make_pending_refund(**overrides) -> dict:
    refund = {
        "id": "pr-1",
        "reservation_id": "11111111-1111-1111-1111-111111111111",
        "payment_id": "pay-1",
        "transaction_id": "pi_test_1",
        "amount": Decimal("200.00"),
        "currency": "USD",
        "status": "pending",
        "attempts": 0,
        "last_error": None,
        "refund_id": None,
        "created_at": datetime(2030, 1, 1, tzinfo=timezone.utc),
    }
    refund.update(overrides)
    return refund


def generate_rsa_keypair():
    """RSA key pair plus the PEM-encoded public key for AUTH_PUBLIC_KEY."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_key, public_pem


def create_token(
    private_key,
    sub: str = "guest-1",
    role: str | None = "guest",
    iss: str = TEST_ISSUER,
    aud: str = TEST_AUDIENCE,
    exp: int | None = None,
) -> str:
    """Create a signed RS256 JWT for testing."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, private_key, algorithm="RS256")
