"""Reservation lifecycle - creation, status transitions and cancellation.

Creation runs inside a single DB transaction:
lock room → validate capacity → check availability → insert → charge → record payment → emit event.
The room row lock serializes concurrent creations for the same room, so the
availability read and the insert are atomic with respect to other writers.
A gateway failure while charging rolls the whole transaction back.

Cancellation commits first and talks to the gateway afterwards: a refund
failure leaves the refund queued and never undoes the cancellation.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from hotelbook.domain.availability import availability_for_room, validate_stay_dates
from hotelbook.domain.errors import (
    BookingNotFoundError,
    CapacityExceededError,
    GatewayError,
    InsufficientInventoryError,
    RoomNotFoundError,
)
from hotelbook.domain.gateway import PaymentGateway, get_gateway
from hotelbook.domain.models import CancellationResult, Reservation, ReservationCreated
from hotelbook.domain.payments import process_pending_refund
from hotelbook.domain.pricing import calculate_total_price, to_money
from hotelbook.domain.refunds import calculate_refund
from hotelbook.domain.statuses import (
    Actor,
    BookingStatus,
    authorize_read,
    authorize_transition,
    ensure_transition,
)
from hotelbook.infra.db import txn
from hotelbook.infra.repositories import reservations_repository as reservations
from hotelbook.infra.repositories.outbox_repository import (
    RESERVATION_CANCELLED,
    RESERVATION_CREATED,
    STATUS_EVENTS,
    emit_reservation_event,
)
from hotelbook.infra.repositories.payments_repository import (
    get_payment_for_reservation,
    insert_payment,
)
from hotelbook.infra.repositories.pending_refunds_repository import insert_pending_refund
from hotelbook.infra.repositories.rooms_repository import get_room
from hotelbook.infra.time import utc_now

logger = logging.getLogger(__name__)


def create_reservation(
    room_id: str,
    requester_id: str,
    check_in: date,
    check_out: date,
    guests: int,
    units: int = 1,
    *,
    gateway: PaymentGateway | None = None,
    today: date | None = None,
    correlation_id: str | None = None,
) -> ReservationCreated:
    """Create a 'pending' reservation and start its payment.

    Args:
        room_id: Room to book.
        requester_id: Guest the reservation belongs to.
        check_in: First night (inclusive).
        check_out: Departure day (exclusive).
        guests: Number of guests.
        units: Number of identical rooms requested.
        gateway: Payment gateway (defaults to the process gateway).
        today: Reference date for the past-date check (defaults to UTC today).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        ReservationCreated with the reservation and the gateway charge.

    Raises:
        ValueError: If guests or units is below 1.
        DateRangeInvalidError: Bad dates (before any DB access).
        RoomNotFoundError: Unknown or inactive room.
        CapacityExceededError: guests > capacity x units.
        InsufficientInventoryError: Not enough free units.
        GatewayError: Charge failed; nothing was persisted.
    """
    if guests < 1:
        raise ValueError("guests must be at least 1")
    if units < 1:
        raise ValueError("units must be at least 1")
    validate_stay_dates(check_in, check_out, today=today)

    gateway = gateway or get_gateway()

    with txn() as cur:
        # Step 1: Lock room (serializes creations for this room)
        room = get_room(cur, room_id, lock=True)
        if room is None:
            raise RoomNotFoundError(room_id)

        # Step 2: Capacity
        max_guests = room.capacity * units
        if guests > max_guests:
            raise CapacityExceededError(guests, max_guests)

        # Step 3: Inventory, on the same cursor under the room lock
        availability = availability_for_room(
            cur, room, check_in=check_in, check_out=check_out, units=units
        )
        if not availability.available:
            logger.info(
                "reservation rejected: insufficient inventory",
                extra={
                    "extra_fields": {
                        "room_id": room_id,
                        "check_in": check_in.isoformat(),
                        "check_out": check_out.isoformat(),
                        "units_requested": units,
                        "units_free": availability.units_free,
                    },
                },
            )
            raise InsufficientInventoryError(room_id, availability.units_free, units)

        # Step 4: Insert
        total_price = calculate_total_price(room.price_per_night, check_in, check_out, units)
        reservation = reservations.insert_reservation(
            cur,
            room_id=room_id,
            requester_id=requester_id,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            units=units,
            total_price=total_price,
            currency=room.currency,
        )

        # Step 5: Charge; GatewayError propagates and txn() rolls back the insert
        try:
            charge = gateway.charge(
                amount=total_price,
                currency=room.currency,
                metadata={"reservation_id": reservation.id, "room_id": room_id},
                idempotency_key=f"reservation:{reservation.id}:charge",
            )
        except GatewayError:
            logger.warning(
                "reservation rolled back after gateway failure",
                extra={"extra_fields": {"reservation_id": reservation.id, "room_id": room_id}},
            )
            raise

        # Step 6: Payment record + outbox event
        payment_id = insert_payment(
            cur,
            reservation_id=reservation.id,
            amount=total_price,
            currency=room.currency,
            transaction_id=charge.transaction_id,
        )
        emit_reservation_event(
            cur,
            event_type=RESERVATION_CREATED,
            reservation_id=reservation.id,
            payload={
                "room_id": room_id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "units": units,
                "total_price": str(total_price),
                "currency": room.currency,
            },
            correlation_id=correlation_id,
        )

    logger.info(
        "reservation created",
        extra={
            "extra_fields": {
                "reservation_id": reservation.id,
                "room_id": room_id,
                "units": units,
                "nights": reservation.nights,
            },
        },
    )
    return ReservationCreated(
        reservation=reservation,
        payment_id=payment_id,
        transaction_id=charge.transaction_id,
        client_secret=charge.client_secret,
    )


def get_reservation(booking_id: str, actor: Actor) -> Reservation:
    """Read a reservation as its owner or as staff.

    Raises:
        BookingNotFoundError: Unknown ID.
        UnauthorizedError: Guest reading someone else's reservation.
    """
    with txn() as cur:
        reservation = reservations.get_reservation(cur, booking_id)
    if reservation is None:
        raise BookingNotFoundError(booking_id)
    authorize_read(actor, owner_id=reservation.requester_id)
    return reservation


def transition_booking(
    booking_id: str,
    new_status: BookingStatus | str,
    actor: Actor,
    *,
    reason: str | None = None,
    gateway: PaymentGateway | None = None,
    correlation_id: str | None = None,
) -> Reservation:
    """Move a reservation along the state machine.

    A move to 'cancelled' runs the full cancellation workflow (refund
    included); use cancel_booking to also get the refund outcome.

    Raises:
        BookingNotFoundError: Unknown ID.
        UnauthorizedError: Actor may not drive this transition.
        AlreadyCancelledError: Reservation already cancelled.
        InvalidTransitionError: Edge not in the state machine; state unchanged.
    """
    target = new_status.value if isinstance(new_status, BookingStatus) else new_status

    if target == BookingStatus.CANCELLED.value:
        result = cancel_booking(
            booking_id, actor, reason, gateway=gateway, correlation_id=correlation_id
        )
        return result.reservation

    with txn() as cur:
        current = reservations.get_reservation(cur, booking_id, lock=True)
        if current is None:
            raise BookingNotFoundError(booking_id)

        authorize_transition(actor, owner_id=current.requester_id, target=target)
        status = ensure_transition(current.status, target, booking_id=booking_id)

        updated = reservations.update_status(cur, booking_id, status)
        emit_reservation_event(
            cur,
            event_type=STATUS_EVENTS[status.value],
            reservation_id=booking_id,
            payload={
                "from_status": current.status.value,
                "to_status": status.value,
                "actor_id": actor.id,
            },
            correlation_id=correlation_id,
        )

    logger.info(
        "reservation status changed",
        extra={
            "extra_fields": {
                "reservation_id": booking_id,
                "from_status": current.status.value,
                "to_status": status.value,
                "actor_role": actor.role,
            },
        },
    )
    return updated


def cancel_booking(
    booking_id: str,
    actor: Actor,
    reason: str | None = None,
    *,
    gateway: PaymentGateway | None = None,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> CancellationResult:
    """Cancel a pending or confirmed reservation and refund per policy.

    This function:
    1. Locks the reservation with FOR UPDATE
    2. Authorizes the actor (owner guest, staff or admin)
    3. Validates the transition (AlreadyCancelledError / InvalidTransitionError)
    4. Calculates the refund (0.00 if the payment was never captured)
    5. Marks the reservation 'cancelled' with reason, actor, timestamp, refund
    6. Queues a pending refund (if refund > 0)
    7. Emits RESERVATION_CANCELLED
    8. After commit, attempts the gateway refund; failure leaves it queued

    Returns:
        CancellationResult with refund_status 'not_applicable', 'succeeded' or 'queued'.
    """
    cancelled_at = now or utc_now()

    with txn() as cur:
        current = reservations.get_reservation(cur, booking_id, lock=True)
        if current is None:
            raise BookingNotFoundError(booking_id)

        authorize_transition(actor, owner_id=current.requester_id, target=BookingStatus.CANCELLED)
        ensure_transition(current.status, BookingStatus.CANCELLED, booking_id=booking_id)

        payment = get_payment_for_reservation(cur, booking_id)
        captured = payment is not None and payment["status"] == "captured"
        if captured:
            refund_amount = calculate_refund(current.total_price, current.check_in, cancelled_at)
        else:
            refund_amount = to_money(0)

        updated = reservations.mark_cancelled(
            cur,
            booking_id,
            reason=reason,
            cancelled_by=actor.id,
            cancelled_at=cancelled_at,
            refund_amount=refund_amount,
        )

        pending_refund_id = None
        if refund_amount > 0:
            pending_refund_id = insert_pending_refund(
                cur,
                reservation_id=booking_id,
                payment_id=payment["id"],
                transaction_id=payment["transaction_id"],
                amount=refund_amount,
                currency=current.currency,
            )

        emit_reservation_event(
            cur,
            event_type=RESERVATION_CANCELLED,
            reservation_id=booking_id,
            payload={
                "from_status": current.status.value,
                "refund_amount": str(refund_amount),
                "reason": reason,
                "cancelled_by": actor.id,
            },
            correlation_id=correlation_id,
        )

    refund_status = "not_applicable"
    if pending_refund_id is not None:
        refund_status = "queued"
        try:
            if process_pending_refund(pending_refund_id, gateway=gateway or get_gateway()):
                refund_status = "succeeded"
        except Exception:
            # Cancellation is committed; the retry task picks the refund up.
            logger.exception(
                "refund attempt after cancellation failed",
                extra={
                    "extra_fields": {
                        "reservation_id": booking_id,
                        "pending_refund_id": pending_refund_id,
                    },
                },
            )

    logger.info(
        "reservation cancelled",
        extra={
            "extra_fields": {
                "reservation_id": booking_id,
                "from_status": current.status.value,
                "refund_amount": str(refund_amount),
                "refund_status": refund_status,
                "actor_role": actor.role,
            },
        },
    )
    return CancellationResult(
        reservation=updated,
        refund_amount=refund_amount,
        pending_refund_id=pending_refund_id,
        refund_status=refund_status,
    )
