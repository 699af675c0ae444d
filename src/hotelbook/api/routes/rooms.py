"""Room availability endpoints (read-only, no auth)."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Path, Query

from hotelbook.api.errors import operation_guard
from hotelbook.domain.availability import availability_calendar, check_availability

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("/{room_id}/availability")
def get_availability(
    room_id: str = Path(..., description="Room ID"),
    check_in: date = Query(..., description="First night (inclusive)"),
    check_out: date = Query(..., description="Departure day (exclusive)"),
    units: int = Query(1, ge=1, description="Units requested"),
) -> dict:
    """Whether `units` of the room are free for [check_in, check_out)."""
    with operation_guard("check_availability", room_id=room_id):
        result = check_availability(room_id, check_in, check_out, units)
    return result.to_dict()


@router.get("/{room_id}/calendar")
def get_calendar(
    room_id: str = Path(..., description="Room ID"),
    start: date = Query(..., description="First night (inclusive)"),
    end: date = Query(..., description="Last night + 1 (exclusive)"),
) -> dict:
    """Free units per night."""
    with operation_guard("availability_calendar", room_id=room_id):
        nights = availability_calendar(room_id, start, end)
    return {"room_id": room_id, "nights": nights}
