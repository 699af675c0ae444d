"""Reservation endpoints.

Thin handlers: validate the body, resolve the actor, call the booking core.
Domain errors are mapped to HTTP statuses by api.errors.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from hotelbook.api.auth import get_current_actor
from hotelbook.api.errors import operation_guard
from hotelbook.domain.bookings import (
    cancel_booking,
    create_reservation,
    get_reservation,
    transition_booking,
)
from hotelbook.domain.statuses import Actor, BookingStatus
from hotelbook.observability.correlation import get_correlation_id
from hotelbook.observability.logging import get_logger
from hotelbook.observability.redaction import safe_log_context


class CreateReservationRequest(BaseModel):
    """Request body for reservation creation."""

    room_id: str
    check_in: date
    check_out: date
    guests: int = Field(..., ge=1)
    units: int = Field(1, ge=1)
    # Staff may book on behalf of a guest
    requester_id: str | None = None


class TransitionRequest(BaseModel):
    status: BookingStatus
    reason: str | None = Field(None, max_length=500)


class CancelReservationRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


router = APIRouter(prefix="/reservations", tags=["reservations"])

logger = get_logger(__name__)


@router.post("", status_code=201)
def create_reservation_action(
    body: CreateReservationRequest,
    actor: Actor = Depends(get_current_actor),
) -> dict:
    """Create a pending reservation and start its payment.

    Returns the reservation plus the gateway client secret for the payment UI.
    """
    requester_id = actor.id
    if body.requester_id and body.requester_id != actor.id:
        if not actor.is_staff:
            raise HTTPException(status_code=403, detail="Cannot book for another guest")
        requester_id = body.requester_id

    with operation_guard("create_reservation", room_id=body.room_id):
        created = create_reservation(
            body.room_id,
            requester_id,
            body.check_in,
            body.check_out,
            body.guests,
            body.units,
            correlation_id=get_correlation_id(),
        )

    logger.info(
        "create reservation completed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                reservation_id=created.reservation.id,
                room_id=body.room_id,
            )
        },
    )
    return created.to_dict()


@router.get("/{reservation_id}")
def get_reservation_action(
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
) -> dict:
    """Get a reservation (owner or staff)."""
    with operation_guard("get_reservation", booking_id=str(reservation_id)):
        reservation = get_reservation(str(reservation_id), actor)
    return reservation.to_dict()


@router.post("/{reservation_id}/actions/transition")
def transition_reservation_action(
    body: TransitionRequest,
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
) -> dict:
    """Move a reservation to a new status (confirm, check in, check out, cancel)."""
    with operation_guard(
        "transition_booking", booking_id=str(reservation_id), new_status=body.status
    ):
        reservation = transition_booking(
            str(reservation_id),
            body.status,
            actor,
            reason=body.reason,
            correlation_id=get_correlation_id(),
        )
    return reservation.to_dict()


@router.post("/{reservation_id}/actions/cancel")
def cancel_reservation_action(
    body: CancelReservationRequest,
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
) -> dict:
    """Cancel a reservation and report the refund owed.

    The cancellation stands even when the gateway refund fails; the refund
    is then reported as 'queued' and retried by the worker.
    """
    with operation_guard("cancel_booking", booking_id=str(reservation_id)):
        result = cancel_booking(
            str(reservation_id),
            actor,
            body.reason,
            correlation_id=get_correlation_id(),
        )

    logger.info(
        "cancel reservation completed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                reservation_id=str(reservation_id),
                refund_amount=result.refund_amount,
                refund_status=result.refund_status,
            )
        },
    )
    return result.to_dict()
