"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM). Every write that can put two active
reservations on the same room translates the storage overlap guards into
ConflictError:

- reservations_no_overlap_idx      (partial UNIQUE, status = 'active')
- reservations_no_active_overlap   (EXCLUDE USING gist on daterange '[)')
"""

from datetime import date, datetime
from typing import Any

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.errors import ConflictError
from hotelbooking.domain.lifecycle import ACTIVE, CANCELLED, COMPLETED, REVENUE_STATUSES
from hotelbooking.domain.models import Reservation
from hotelbooking.domain.normalization import to_decimal
from hotelbooking.domain.pricing import PriceBreakdown
from hotelbooking.infra.db import constraint_name, fetchall, fetchone, for_update

OVERLAP_CONSTRAINTS = frozenset({
    "reservations_no_overlap_idx",
    "reservations_no_active_overlap",
})

# Columns an update may touch
UPDATABLE_COLUMNS = frozenset({
    "check_in_date",
    "check_out_date",
    "guest_count",
    "special_requests",
    "original_price",
    "total_price",
    "discount_percent_applied",
})

# Public sort keys for listings -> column
SORT_COLUMNS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "check_in_date": "check_in_date",
    "price": "total_price",
}

_COLUMNS = """
    id, reservation_token, room_id, client_id,
    check_in_date, check_out_date, guest_count,
    original_price, total_price, discount_percent_applied,
    status, special_requests, cancellation_reason,
    cancelled_at, completed_at, created_at, updated_at
"""


def _row_to_reservation(row: tuple) -> Reservation:
    return Reservation(
        id=row[0],
        token=str(row[1]),
        room_id=row[2],
        client_id=row[3],
        check_in_date=row[4],
        check_out_date=row[5],
        guest_count=row[6],
        original_price=to_decimal(row[7]),
        total_price=to_decimal(row[8]),
        discount_percent_applied=to_decimal(row[9]),
        status=row[10],
        special_requests=row[11],
        cancellation_reason=row[12],
        cancelled_at=row[13],
        completed_at=row[14],
        created_at=row[15],
        updated_at=row[16],
    )


def _execute_guarded(cur: PgCursor, query: str, params: Any, *, room_id: int) -> None:
    """Execute a write, mapping overlap-guard violations to ConflictError."""
    try:
        cur.execute(query, params)
    except (pg_errors.UniqueViolation, pg_errors.ExclusionViolation) as exc:
        if constraint_name(exc) in OVERLAP_CONSTRAINTS:
            raise ConflictError(
                "Room is already booked for the selected dates",
                room_id=room_id,
            ) from exc
        raise


def insert_reservation(
    cur: PgCursor,
    *,
    token: str,
    client_id: int,
    room_id: int,
    check_in: date,
    check_out: date,
    guest_count: int,
    pricing: PriceBreakdown,
    special_requests: str | None = None,
) -> Reservation:
    """Insert an active reservation.

    Raises:
        ConflictError: A concurrent transaction committed an overlapping
            active reservation for the room first.
    """
    _execute_guarded(
        cur,
        f"""
        INSERT INTO reservations (
            reservation_token, client_id, room_id,
            check_in_date, check_out_date, guest_count,
            original_price, total_price, discount_percent_applied,
            status, special_requests
        )
        VALUES (%s::uuid, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """,
        (
            token,
            client_id,
            room_id,
            check_in,
            check_out,
            guest_count,
            pricing.original,
            pricing.total,
            pricing.discount,
            ACTIVE,
            special_requests,
        ),
        room_id=room_id,
    )
    return _row_to_reservation(cur.fetchone())


def get_reservation_by_token(
    cur: PgCursor,
    token: str,
    *,
    lock: bool = False,
) -> Reservation | None:
    query = f"SELECT {_COLUMNS} FROM reservations WHERE reservation_token = %s::uuid"
    row = for_update(cur, query, (token,)) if lock else fetchone(cur, query, (token,))
    return _row_to_reservation(row) if row else None


def update_reservation_fields(
    cur: PgCursor,
    reservation: Reservation,
    changes: dict[str, Any],
) -> Reservation:
    """Persist only the given columns of an active reservation.

    Raises:
        ValueError: If changes names a column outside UPDATABLE_COLUMNS.
        ConflictError: New dates collide with another active reservation.
    """
    unknown = set(changes) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Columns not updatable: {sorted(unknown)}")
    if not changes:
        return reservation

    columns = sorted(changes)
    assignments = ", ".join(f"{col} = %s" for col in columns)
    params = [changes[col] for col in columns]
    params.append(reservation.id)

    _execute_guarded(
        cur,
        f"""
        UPDATE reservations
        SET {assignments}, updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        params,
        room_id=reservation.room_id,
    )
    return _row_to_reservation(cur.fetchone())


def mark_cancelled(
    cur: PgCursor,
    *,
    reservation_id: int,
    reason: str | None,
    cancelled_at: datetime,
) -> Reservation | None:
    """Move an active reservation to cancelled.

    Returns None if the row was no longer active.
    """
    cur.execute(
        f"""
        UPDATE reservations
        SET status = %s,
            cancelled_at = %s,
            cancellation_reason = %s,
            updated_at = now()
        WHERE id = %s AND status = %s
        RETURNING {_COLUMNS}
        """,
        (CANCELLED, cancelled_at, reason, reservation_id, ACTIVE),
    )
    row = cur.fetchone()
    return _row_to_reservation(row) if row else None


def complete_past_reservations(cur: PgCursor, *, today: date, completed_at: datetime) -> int:
    """Bulk active -> completed for stays whose check-out date is before today.

    Terminal rows are never matched, so re-running is a no-op.

    Returns:
        Number of rows transitioned.
    """
    cur.execute(
        """
        UPDATE reservations
        SET status = %s, completed_at = %s, updated_at = now()
        WHERE status = %s AND check_out_date < %s
        """,
        (COMPLETED, completed_at, ACTIVE, today),
    )
    return cur.rowcount


def list_client_reservations(
    cur: PgCursor,
    *,
    client_id: int,
    status: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Reservation], int]:
    """Page through a client's reservations, newest first.

    Returns:
        Tuple of (reservations, total matching rows).
    """
    return search_reservations(
        cur, client_id=client_id, status=status, limit=limit, offset=offset
    )


def search_reservations(
    cur: PgCursor,
    *,
    client_id: int | None = None,
    room_id: int | None = None,
    status: str | None = None,
    check_in_from: date | None = None,
    check_in_to: date | None = None,
    vip_only: bool = False,
    sort: str = "created_at",
    descending: bool = True,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Reservation], int]:
    """Filtered, paginated reservation listing.

    Check-in bounds are inclusive. vip_only keeps reservations priced with
    a discount. The sort key is looked up in SORT_COLUMNS; id breaks ties.

    Returns:
        Tuple of (reservations, total matching rows).

    Raises:
        ValueError: If sort is not a key of SORT_COLUMNS.
    """
    if sort not in SORT_COLUMNS:
        raise ValueError(f"Unsupported sort key: {sort!r}")

    conditions: list[str] = []
    params: list = []
    for condition, value in (
        ("client_id = %s", client_id),
        ("room_id = %s", room_id),
        ("status = %s", status),
        ("check_in_date >= %s", check_in_from),
        ("check_in_date <= %s", check_in_to),
    ):
        if value is not None:
            conditions.append(condition)
            params.append(value)
    if vip_only:
        conditions.append("discount_percent_applied > 0")

    where = " AND ".join(conditions) or "TRUE"
    direction = "DESC" if descending else "ASC"

    total = fetchone(cur, f"SELECT COUNT(*) FROM reservations WHERE {where}", params)[0]

    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM reservations
        WHERE {where}
        ORDER BY {SORT_COLUMNS[sort]} {direction}, id {direction}
        LIMIT %s OFFSET %s
        """,
        [*params, limit, offset],
    )
    return ([_row_to_reservation(row) for row in rows], total)


def aggregate_stats(
    cur: PgCursor,
    *,
    property_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict[str, Any]:
    """Counts per status, VIP-discounted count and revenue in one pass.

    Date bounds filter on check_in_date (inclusive).
    """
    conditions: list[str] = []
    params: list = []

    if property_id is not None:
        conditions.append("ro.property_id = %s")
        params.append(property_id)
    if date_from is not None:
        conditions.append("b.check_in_date >= %s")
        params.append(date_from)
    if date_to is not None:
        conditions.append("b.check_in_date <= %s")
        params.append(date_to)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    cur.execute(
        f"""
        SELECT
            COUNT(*),
            COUNT(*) FILTER (WHERE b.status = %s),
            COUNT(*) FILTER (WHERE b.status = %s),
            COUNT(*) FILTER (WHERE b.status = %s),
            COUNT(*) FILTER (WHERE b.discount_percent_applied > 0),
            COALESCE(SUM(b.total_price) FILTER (WHERE b.status = ANY(%s::reservation_status[])), 0)
        FROM reservations b
        JOIN rooms ro ON ro.id = b.room_id
        {where}
        """,
        [ACTIVE, CANCELLED, COMPLETED, list(REVENUE_STATUSES), *params],
    )
    row = cur.fetchone()
    return {
        "total": row[0],
        "active": row[1],
        "cancelled": row[2],
        "completed": row[3],
        "vip": row[4],
        "revenue": to_decimal(row[5]),
    }
