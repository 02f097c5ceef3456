"""Rooms repository - room inventory reads.

Room and room class rows are owned by inventory management; the engine
only reads them (and locks a room row to serialize bookings for it).
"""

from datetime import date
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.lifecycle import ACTIVE
from hotelbooking.domain.models import ROOM_AVAILABLE, Room, RoomClass
from hotelbooking.domain.normalization import to_decimal
from hotelbooking.infra.db import fetchall

_SELECT = """
    SELECT r.id, r.property_id, r.room_number, r.floor, r.status,
           rc.id, rc.name, rc.description, rc.base_rate, rc.max_occupancy, rc.amenities,
           p.name
    FROM rooms r
    JOIN room_classes rc ON rc.id = r.room_class_id
    JOIN properties p ON p.id = r.property_id
"""


def _row_to_room(row: tuple) -> Room:
    return Room(
        id=row[0],
        property_id=row[1],
        room_number=row[2],
        floor=row[3],
        status=row[4],
        room_class=RoomClass(
            id=row[5],
            name=row[6],
            description=row[7],
            base_rate=to_decimal(row[8]),
            max_occupancy=row[9],
            amenities=list(row[10] or []),
        ),
        property_name=row[11],
    )


def get_room(cur: PgCursor, room_id: int, *, lock: bool = False) -> Room | None:
    """Load a room with its class and property.

    Args:
        cur: Database cursor.
        room_id: Room identifier.
        lock: If True, locks the rooms row (FOR UPDATE OF r) so concurrent
              bookings of the same room serialize on it. Other rooms are
              unaffected.
    """
    suffix = " FOR UPDATE OF r" if lock else ""
    cur.execute(f"{_SELECT} WHERE r.id = %s{suffix}", (room_id,))
    row = cur.fetchone()
    return _row_to_room(row) if row else None


def find_available_rooms(
    cur: PgCursor,
    *,
    property_id: int,
    check_in: date,
    check_out: date,
    guest_count: int | None = None,
    room_class_id: int | None = None,
    max_rate: Decimal | None = None,
) -> list[Room]:
    """Bookable rooms of a property with no active reservation overlapping
    [check_in, check_out). All values are bound parameters."""
    conditions = [
        "r.property_id = %s",
        "r.status = %s",
        """NOT EXISTS (
            SELECT 1 FROM reservations b
            WHERE b.room_id = r.id
              AND b.status = %s
              AND b.check_in_date < %s
              AND b.check_out_date > %s
        )""",
    ]
    params: list = [property_id, ROOM_AVAILABLE, ACTIVE, check_out, check_in]

    if guest_count is not None:
        conditions.append("rc.max_occupancy >= %s")
        params.append(guest_count)

    if room_class_id is not None:
        conditions.append("rc.id = %s")
        params.append(room_class_id)

    if max_rate is not None:
        conditions.append("rc.base_rate <= %s")
        params.append(max_rate)

    where = " AND ".join(conditions)
    rows = fetchall(cur, f"{_SELECT} WHERE {where} ORDER BY r.room_number ASC", params)
    return [_row_to_room(row) for row in rows]
