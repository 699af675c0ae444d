"""Typed records passed between repositories, domain logic and the API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from hotelbook.domain.statuses import BookingStatus


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    capacity: int
    total_inventory: int
    price_per_night: Decimal
    currency: str
    is_active: bool = True


@dataclass(frozen=True)
class Reservation:
    id: str
    room_id: str
    requester_id: str
    check_in: date
    check_out: date
    guests: int
    units: int
    total_price: Decimal
    currency: str
    status: BookingStatus
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    refund_amount: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (no PII)."""
        return {
            "id": self.id,
            "room_id": self.room_id,
            "requester_id": self.requester_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "guests": self.guests,
            "units": self.units,
            "total_price": str(self.total_price),
            "currency": self.currency,
            "status": self.status.value,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
            "refund_amount": str(self.refund_amount) if self.refund_amount is not None else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    room_id: str
    check_in: date
    check_out: date
    units_requested: int
    units_booked: int
    total_inventory: int

    @property
    def units_free(self) -> int:
        return self.total_inventory - self.units_booked

    @property
    def available(self) -> bool:
        return self.units_free >= self.units_requested

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "units_requested": self.units_requested,
            "available": self.available,
            "units_free": max(self.units_free, 0),
        }


@dataclass(frozen=True)
class ReservationCreated:
    reservation: Reservation
    payment_id: str
    transaction_id: str
    client_secret: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation": self.reservation.to_dict(),
            "payment": {
                "id": self.payment_id,
                "transaction_id": self.transaction_id,
                "client_secret": self.client_secret,
            },
        }


@dataclass(frozen=True)
class CancellationResult:
    reservation: Reservation
    refund_amount: Decimal
    pending_refund_id: str | None = None
    refund_status: str = "not_applicable"  # not_applicable | succeeded | queued

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation": self.reservation.to_dict(),
            "refund_amount": str(self.refund_amount),
            "pending_refund_id": self.pending_refund_id,
            "refund_status": self.refund_status,
        }
