"""Booking state machine and actor capability checks.

States: pending (initial), confirmed, checked_in, checked_out (terminal),
cancelled (terminal). The table below is the only source of legal moves;
the core does not enforce timing (e.g. early check-in is the caller's call).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hotelbook.domain.errors import (
    AlreadyCancelledError,
    InvalidTransitionError,
    UnauthorizedError,
)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Role hierarchy: lower index = less privilege
ROLE_HIERARCHY = ["guest", "staff", "admin"]


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller of a core operation."""

    id: str
    role: str

    @property
    def is_staff(self) -> bool:
        return role_level(self.role) >= role_level("staff")


SYSTEM_ACTOR = Actor(id="system", role="admin")


def role_level(role: str) -> int:
    """Get numeric level for role (higher = more privilege, -1 if unknown)."""
    try:
        return ROLE_HIERARCHY.index(role)
    except ValueError:
        return -1


def can_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    """Return True if current -> target is an edge of the state machine."""
    try:
        current = BookingStatus(current)
        target = BookingStatus(target)
    except ValueError:
        return False
    return target in TRANSITIONS[current]


def ensure_transition(
    current: BookingStatus | str,
    target: BookingStatus | str,
    *,
    booking_id: str,
) -> BookingStatus:
    """Validate a transition and return the target status.

    Raises:
        AlreadyCancelledError: cancelled -> cancelled.
        InvalidTransitionError: Any other move not in TRANSITIONS.
    """
    current_value = current.value if isinstance(current, BookingStatus) else current
    target_value = target.value if isinstance(target, BookingStatus) else target

    if (
        current_value == BookingStatus.CANCELLED.value
        and target_value == BookingStatus.CANCELLED.value
    ):
        raise AlreadyCancelledError(booking_id)
    if not can_transition(current_value, target_value):
        raise InvalidTransitionError(current_value, target_value)
    return BookingStatus(target_value)


def authorize_transition(
    actor: Actor,
    *,
    owner_id: str,
    target: BookingStatus | str,
) -> None:
    """Check that actor may drive a reservation owned by owner_id to target.

    Staff and admin may drive every transition. Guests may only cancel
    their own reservations.

    Raises:
        UnauthorizedError: If the actor lacks rights.
    """
    if actor.is_staff:
        return

    if role_level(actor.role) < 0:
        raise UnauthorizedError(f"Unknown role '{actor.role}'")

    target_value = target.value if isinstance(target, BookingStatus) else target
    if target_value != BookingStatus.CANCELLED.value:
        raise UnauthorizedError("Guests may only cancel reservations")
    if actor.id != owner_id:
        raise UnauthorizedError("Reservation belongs to another guest")


def authorize_read(actor: Actor, *, owner_id: str) -> None:
    """Owners and staff may read a reservation."""
    if actor.is_staff or actor.id == owner_id:
        return
    raise UnauthorizedError("Reservation belongs to another guest")
