"""Tests for the booking state machine and actor checks."""

import pytest

from hotelbook.domain.errors import (
    AlreadyCancelledError,
    InvalidTransitionError,
    UnauthorizedError,
)
from hotelbook.domain.statuses import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    Actor,
    BookingStatus,
    authorize_read,
    authorize_transition,
    can_transition,
    ensure_transition,
    role_level,
)

S = BookingStatus

LEGAL = {
    (S.PENDING, S.CONFIRMED),
    (S.PENDING, S.CANCELLED),
    (S.CONFIRMED, S.CHECKED_IN),
    (S.CONFIRMED, S.CANCELLED),
    (S.CHECKED_IN, S.CHECKED_OUT),
}


class TestTransitionTable:
    @pytest.mark.parametrize("current", list(S))
    @pytest.mark.parametrize("target", list(S))
    def test_only_listed_edges_are_legal(self, current, target):
        assert can_transition(current, target) == ((current, target) in LEGAL)

    def test_terminal_states(self):
        assert TERMINAL_STATUSES == {S.CHECKED_OUT, S.CANCELLED}
        for status in TERMINAL_STATUSES:
            assert TRANSITIONS[status] == frozenset()

    def test_unknown_status_is_not_a_transition(self):
        assert can_transition("pending", "no_show") is False
        assert can_transition("archived", "confirmed") is False


class TestEnsureTransition:
    def test_pending_to_checked_in_is_rejected(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(S.PENDING, S.CHECKED_IN, booking_id="b-1")
        assert exc_info.value.current == "pending"
        assert exc_info.value.requested == "checked_in"

    def test_cancel_twice_is_already_cancelled(self):
        with pytest.raises(AlreadyCancelledError) as exc_info:
            ensure_transition(S.CANCELLED, S.CANCELLED, booking_id="b-1")
        assert exc_info.value.code == "already_cancelled"

    def test_already_cancelled_is_an_invalid_transition(self):
        assert issubclass(AlreadyCancelledError, InvalidTransitionError)

    def test_checked_out_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition("checked_out", "cancelled", booking_id="b-1")
        assert not isinstance(exc_info.value, AlreadyCancelledError)

    def test_returns_target_enum(self):
        assert ensure_transition("confirmed", "checked_in", booking_id="b-1") is S.CHECKED_IN


class TestAuthorizeTransition:
    def test_staff_may_drive_any_edge(self):
        staff = Actor(id="staff-1", role="staff")
        authorize_transition(staff, owner_id="guest-1", target=S.CHECKED_IN)

    def test_admin_is_staff(self):
        assert Actor(id="a", role="admin").is_staff
        assert not Actor(id="g", role="guest").is_staff

    def test_guest_may_cancel_own(self):
        guest = Actor(id="guest-1", role="guest")
        authorize_transition(guest, owner_id="guest-1", target=S.CANCELLED)

    def test_guest_may_not_cancel_others(self):
        guest = Actor(id="guest-2", role="guest")
        with pytest.raises(UnauthorizedError):
            authorize_transition(guest, owner_id="guest-1", target=S.CANCELLED)

    def test_guest_may_not_check_in(self):
        guest = Actor(id="guest-1", role="guest")
        with pytest.raises(UnauthorizedError):
            authorize_transition(guest, owner_id="guest-1", target="checked_in")

    def test_unknown_role_rejected(self):
        with pytest.raises(UnauthorizedError):
            authorize_transition(Actor(id="x", role="owner"), owner_id="x", target=S.CANCELLED)
        assert role_level("owner") == -1


class TestAuthorizeRead:
    def test_owner_and_staff_may_read(self):
        authorize_read(Actor(id="guest-1", role="guest"), owner_id="guest-1")
        authorize_read(Actor(id="s", role="staff"), owner_id="guest-1")

    def test_other_guest_may_not_read(self):
        with pytest.raises(UnauthorizedError):
            authorize_read(Actor(id="guest-2", role="guest"), owner_id="guest-1")
