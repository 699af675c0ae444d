"""Domain errors for the booking core.

Every error carries a stable ``code`` so the HTTP layer can map it to a
status without inspecting messages.
"""

from __future__ import annotations

from decimal import Decimal


class BookingError(Exception):
    """Base class for all booking-core failures."""

    code = "booking_error"


class RoomNotFoundError(BookingError):
    """Room id does not resolve to an active room."""

    code = "room_not_found"

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class BookingNotFoundError(BookingError):
    """Reservation id does not exist."""

    code = "booking_not_found"

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Reservation {booking_id} not found")


class CapacityExceededError(BookingError):
    """Guests exceed room capacity times units requested."""

    code = "capacity_exceeded"

    def __init__(self, guests: int, max_guests: int) -> None:
        self.guests = guests
        self.max_guests = max_guests
        super().__init__(
            f"Room capacity exceeded: {guests} guests, maximum {max_guests}"
        )


class DateRangeInvalidError(BookingError):
    """Check-out not after check-in, check-in in the past, or stay too long."""

    code = "date_range_invalid"


class InsufficientInventoryError(BookingError):
    """Not enough free units for the requested date range."""

    code = "insufficient_inventory"

    def __init__(self, room_id: str, units_free: int, units_requested: int) -> None:
        self.room_id = room_id
        self.units_free = units_free
        self.units_requested = units_requested
        super().__init__(
            f"Only {max(units_free, 0)} unit(s) of room {room_id} available, "
            f"{units_requested} requested"
        )


class InvalidTransitionError(BookingError):
    """Requested status change is not an edge of the state machine."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str, message: str | None = None) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot move reservation from '{current}' to '{requested}'"
        )


class AlreadyCancelledError(InvalidTransitionError):
    """Cancellation requested for a reservation that is already cancelled."""

    code = "already_cancelled"

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(
            "cancelled", "cancelled", f"Reservation {booking_id} is already cancelled"
        )


class UnauthorizedError(BookingError):
    """Actor lacks rights for the requested operation."""

    code = "unauthorized"


class GatewayError(BookingError):
    """Payment gateway call failed or timed out."""

    code = "gateway_error"

    def __init__(self, message: str, *, operation: str, amount: Decimal | None = None) -> None:
        self.operation = operation
        self.amount = amount
        super().__init__(message)
