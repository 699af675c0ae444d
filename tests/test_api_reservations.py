"""Tests for /reservations endpoints (booking core mocked).

Covers:
- Create: 201 with payment client secret, domain error mapping
- Booking on behalf of another guest (staff only)
- Read, transition and cancel
- Unexpected failures masked as 500 internal_error
- No auth (401)
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from hotelbook.api.auth import get_current_actor
from hotelbook.api.factory import create_app
from hotelbook.domain.errors import (
    AlreadyCancelledError,
    BookingNotFoundError,
    CapacityExceededError,
    DateRangeInvalidError,
    GatewayError,
    InsufficientInventoryError,
    InvalidTransitionError,
    RoomNotFoundError,
    UnauthorizedError,
)
from hotelbook.domain.models import CancellationResult, ReservationCreated
from hotelbook.domain.statuses import Actor, BookingStatus
from helpers import make_reservation

GUEST = Actor(id="guest-1", role="guest")
STAFF = Actor(id="staff-1", role="staff")

CREATE_BODY = {
    "room_id": "room-1",
    "check_in": "2030-03-01",
    "check_out": "2030-03-03",
    "guests": 2,
}


def _client(actor: Actor) -> TestClient:
    app = create_app(role="public")
    app.dependency_overrides[get_current_actor] = lambda: actor
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def reservation_id():
    return str(uuid4())


class TestCreate:
    def test_created(self):
        created = ReservationCreated(
            reservation=make_reservation(),
            payment_id="pay-1",
            transaction_id="pi_1",
            client_secret="pi_1_secret",
        )
        with patch(
            "hotelbook.api.routes.reservations.create_reservation", return_value=created
        ) as create:
            resp = _client(GUEST).post("/reservations", json=CREATE_BODY)

        assert resp.status_code == 201
        body = resp.json()
        assert body["reservation"]["status"] == "pending"
        assert body["reservation"]["total_price"] == "200.00"
        assert body["payment"]["client_secret"] == "pi_1_secret"
        args = create.call_args.args
        assert args[0] == "room-1"
        assert args[1] == "guest-1"
        assert args[4:] == (2, 1)

    @pytest.mark.parametrize(
        "error, status, code",
        [
            (RoomNotFoundError("room-1"), 404, "room_not_found"),
            (CapacityExceededError(5, 2), 422, "capacity_exceeded"),
            (DateRangeInvalidError("check_in cannot be in the past"), 422, "date_range_invalid"),
            (InsufficientInventoryError("room-1", 0, 1), 409, "insufficient_inventory"),
            (GatewayError("declined", operation="charge"), 502, "gateway_error"),
        ],
    )
    def test_domain_errors_mapped(self, error, status, code):
        with patch("hotelbook.api.routes.reservations.create_reservation", side_effect=error):
            resp = _client(GUEST).post("/reservations", json=CREATE_BODY)

        assert resp.status_code == status
        assert resp.json()["code"] == code

    def test_zero_guests_rejected_at_boundary(self):
        with patch("hotelbook.api.routes.reservations.create_reservation") as create:
            resp = _client(GUEST).post("/reservations", json={**CREATE_BODY, "guests": 0})
        assert resp.status_code == 422
        create.assert_not_called()

    def test_guest_cannot_book_for_someone_else(self):
        with patch("hotelbook.api.routes.reservations.create_reservation") as create:
            resp = _client(GUEST).post(
                "/reservations", json={**CREATE_BODY, "requester_id": "guest-2"}
            )
        assert resp.status_code == 403
        create.assert_not_called()

    def test_staff_books_on_behalf(self):
        created = ReservationCreated(
            reservation=make_reservation(requester_id="guest-2"),
            payment_id="pay-1",
            transaction_id="pi_1",
        )
        with patch(
            "hotelbook.api.routes.reservations.create_reservation", return_value=created
        ) as create:
            resp = _client(STAFF).post(
                "/reservations", json={**CREATE_BODY, "requester_id": "guest-2"}
            )
        assert resp.status_code == 201
        assert create.call_args.args[1] == "guest-2"

    def test_unexpected_error_is_masked(self):
        with patch(
            "hotelbook.api.routes.reservations.create_reservation",
            side_effect=RuntimeError("db password=hunter2"),
        ):
            resp = _client(GUEST).post("/reservations", json=CREATE_BODY)

        assert resp.status_code == 500
        assert resp.json() == {"detail": "internal_error"}


class TestRead:
    def test_get(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.get_reservation",
            return_value=make_reservation(id=reservation_id),
        ) as get:
            resp = _client(GUEST).get(f"/reservations/{reservation_id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == reservation_id
        get.assert_called_once_with(reservation_id, GUEST)

    def test_forbidden(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.get_reservation",
            side_effect=UnauthorizedError("Reservation belongs to another guest"),
        ):
            resp = _client(GUEST).get(f"/reservations/{reservation_id}")
        assert resp.status_code == 403
        assert resp.json()["code"] == "unauthorized"

    def test_not_found(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.get_reservation",
            side_effect=BookingNotFoundError(reservation_id),
        ):
            resp = _client(STAFF).get(f"/reservations/{reservation_id}")
        assert resp.status_code == 404

    def test_malformed_id(self):
        resp = _client(STAFF).get("/reservations/not-a-uuid")
        assert resp.status_code == 422


class TestTransition:
    def test_check_in(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.transition_booking",
            return_value=make_reservation(status=BookingStatus.CHECKED_IN),
        ) as transition:
            resp = _client(STAFF).post(
                f"/reservations/{reservation_id}/actions/transition",
                json={"status": "checked_in"},
            )
        assert resp.status_code == 200
        assert resp.json()["status"] == "checked_in"
        assert transition.call_args.args[1] is BookingStatus.CHECKED_IN

    def test_invalid_transition_is_409(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.transition_booking",
            side_effect=InvalidTransitionError("pending", "checked_in"),
        ):
            resp = _client(STAFF).post(
                f"/reservations/{reservation_id}/actions/transition",
                json={"status": "checked_in"},
            )
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_transition"

    def test_unknown_status_rejected(self, reservation_id):
        resp = _client(STAFF).post(
            f"/reservations/{reservation_id}/actions/transition",
            json={"status": "no_show"},
        )
        assert resp.status_code == 422


class TestCancel:
    def test_cancel_reports_refund(self, reservation_id):
        result = CancellationResult(
            reservation=make_reservation(
                status=BookingStatus.CANCELLED,
                cancelled_at=datetime(2030, 2, 1, tzinfo=timezone.utc),
                refund_amount=Decimal("100.00"),
            ),
            refund_amount=Decimal("100.00"),
            pending_refund_id="pr-1",
            refund_status="queued",
        )
        with patch(
            "hotelbook.api.routes.reservations.cancel_booking", return_value=result
        ) as cancel:
            resp = _client(GUEST).post(
                f"/reservations/{reservation_id}/actions/cancel",
                json={"reason": "plans changed"},
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["refund_amount"] == "100.00"
        assert body["refund_status"] == "queued"
        assert body["reservation"]["status"] == "cancelled"
        assert cancel.call_args.args == (reservation_id, GUEST, "plans changed")

    def test_already_cancelled_is_409(self, reservation_id):
        with patch(
            "hotelbook.api.routes.reservations.cancel_booking",
            side_effect=AlreadyCancelledError(reservation_id),
        ):
            resp = _client(GUEST).post(
                f"/reservations/{reservation_id}/actions/cancel", json={}
            )
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_cancelled"


class TestNoAuth:
    def test_missing_token_is_401(self, reservation_id):
        client = TestClient(create_app(role="public"), raise_server_exceptions=False)
        resp = client.get(f"/reservations/{reservation_id}")
        assert resp.status_code == 401
