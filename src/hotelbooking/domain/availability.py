"""Room availability checks.

Overlap formula (half-open intervals [check_in, check_out)):

    new_check_in < existing_check_out AND new_check_out > existing_check_in

Strict inequality lets a stay start on the day another one checks out.
Only active reservations hold a room.

On its own this check is advisory: callers that insert or move a
reservation must run it inside the same transaction as the write, after
locking the room row, and rely on the reservations_no_active_overlap
constraint for anything that still slips through.
"""

from __future__ import annotations

import logging
from datetime import date

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.errors import ConflictError
from hotelbooking.domain.lifecycle import ACTIVE

logger = logging.getLogger(__name__)


def find_conflicting_reservation(
    cur: PgCursor,
    *,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: int | None = None,
) -> tuple[int, date, date] | None:
    """Return (id, check_in_date, check_out_date) of the first overlapping
    active reservation, or None.

    Args:
        cur: Database cursor (should be within a transaction).
        room_id: Room identifier.
        check_in: Requested check-in date (inclusive).
        check_out: Requested check-out date (exclusive).
        exclude_reservation_id: Reservation to ignore (the one being updated).
    """
    conditions = [
        "room_id = %s",
        "status = %s",
        "check_in_date < %s",   # existing check-in < new check-out
        "check_out_date > %s",  # existing check-out > new check-in
    ]
    params: list = [room_id, ACTIVE, check_out, check_in]

    if exclude_reservation_id is not None:
        conditions.append("id <> %s")
        params.append(exclude_reservation_id)

    where = " AND ".join(conditions)

    cur.execute(
        f"""
        SELECT id, check_in_date, check_out_date
        FROM reservations
        WHERE {where}
        ORDER BY check_in_date
        LIMIT 1
        """,
        params,
    )
    row = cur.fetchone()
    if row is None:
        return None
    return (row[0], row[1], row[2])


def is_available(
    cur: PgCursor,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: int | None = None,
) -> bool:
    """True iff no active reservation for room_id overlaps [check_in, check_out)."""
    return (
        find_conflicting_reservation(
            cur,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            exclude_reservation_id=exclude_reservation_id,
        )
        is None
    )


def assert_available(
    cur: PgCursor,
    *,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: int | None = None,
) -> None:
    """Raise ConflictError if the room is held for any part of the range."""
    conflict = find_conflicting_reservation(
        cur,
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        exclude_reservation_id=exclude_reservation_id,
    )
    if conflict is None:
        return

    _, existing_in, existing_out = conflict
    # conflicting row id is internal; log dates only
    logger.warning(
        "room conflict detected",
        extra={
            "extra_fields": {
                "room_id": room_id,
                "requested_check_in": check_in.isoformat(),
                "requested_check_out": check_out.isoformat(),
                "existing_check_in": existing_in.isoformat(),
                "existing_check_out": existing_out.isoformat(),
            },
        },
    )
    raise ConflictError(
        "Room is already booked for the selected dates",
        room_id=room_id,
        existing_check_in=existing_in.isoformat(),
        existing_check_out=existing_out.isoformat(),
    )
