"""Rooms repository - read access to room inventory.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from hotelbook.domain.models import Room
from hotelbook.infra.db import fetchone, for_update

_ROOM_QUERY = """
    SELECT id, name, capacity, total_inventory, price_per_night, currency, is_active
    FROM rooms
    WHERE id = %s AND is_active = true
"""


def _row_to_room(row: tuple) -> Room:
    return Room(
        id=str(row[0]),
        name=row[1],
        capacity=row[2],
        total_inventory=row[3],
        price_per_night=row[4],
        currency=row[5],
        is_active=row[6],
    )


def get_room(cur: PgCursor, room_id: str, *, lock: bool = False) -> Room | None:
    """Fetch an active room.

    Args:
        cur: Database cursor.
        room_id: Room identifier.
        lock: If True, take a row lock (FOR UPDATE) that serializes every
            reservation creation for this room until the transaction ends.

    Returns:
        Room or None if missing or inactive.
    """
    if lock:
        row = for_update(cur, _ROOM_QUERY, (room_id,))
    else:
        row = fetchone(cur, _ROOM_QUERY, (room_id,))
    if row is None:
        return None
    return _row_to_room(row)
