"""Clients repository - client directory records and cached VIP status.

Uses raw SQL with psycopg2 (no ORM). Emails are expected already
normalized (lower-cased, trimmed); the clients.email UNIQUE constraint is
the identity key.
"""

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.models import Client, ClientInfo, VipStatus
from hotelbooking.domain.normalization import to_decimal
from hotelbooking.infra.db import fetchall, fetchone, for_update

_COLUMNS = """
    id, first_name, last_name, email, phone,
    is_vip, vip_tier, vip_discount, vip_checked_at
"""


def _row_to_client(row: tuple) -> Client:
    return Client(
        id=row[0],
        first_name=row[1],
        last_name=row[2],
        email=row[3],
        phone=row[4],
        is_vip=bool(row[5]),
        vip_tier=row[6],
        vip_discount=to_decimal(row[7]),
        vip_checked_at=row[8],
    )


def find_client_by_email(cur: PgCursor, email: str, *, lock: bool = False) -> Client | None:
    query = f"SELECT {_COLUMNS} FROM clients WHERE email = %s"
    row = for_update(cur, query, (email,)) if lock else fetchone(cur, query, (email,))
    return _row_to_client(row) if row else None


def get_client(cur: PgCursor, client_id: int) -> Client | None:
    cur.execute(f"SELECT {_COLUMNS} FROM clients WHERE id = %s", (client_id,))
    row = cur.fetchone()
    return _row_to_client(row) if row else None


def insert_client_if_absent(cur: PgCursor, info: ClientInfo) -> tuple[Client, bool]:
    """Resolve the client for info.email, creating it when missing.

    Uses ON CONFLICT DO NOTHING so two bookings for a new email racing each
    other resolve to the same row. Existing clients keep their stored names.
    The returned row is locked FOR UPDATE until the transaction ends.

    Returns:
        Tuple of (client, created).
    """
    cur.execute(
        f"""
        INSERT INTO clients (first_name, last_name, email, phone)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (email) DO NOTHING
        RETURNING {_COLUMNS}
        """,
        (info.first_name, info.last_name, info.email, info.phone),
    )
    row = cur.fetchone()
    if row is not None:
        return (_row_to_client(row), True)

    existing = find_client_by_email(cur, info.email, lock=True)
    if existing is None:
        # Only reachable if the conflicting row was deleted concurrently
        raise RuntimeError("client row vanished during upsert")
    return (existing, False)


def update_vip_status(
    cur: PgCursor,
    *,
    client_id: int,
    status: VipStatus,
    checked_at: datetime,
) -> Client:
    """Cache a verified VIP status on the client row."""
    cur.execute(
        f"""
        UPDATE clients
        SET is_vip = %s,
            vip_tier = %s,
            vip_discount = %s,
            vip_checked_at = %s,
            updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (status.is_vip, status.tier, status.discount, checked_at, client_id),
    )
    return _row_to_client(cur.fetchone())


def list_clients_needing_vip_check(
    cur: PgCursor,
    *,
    verified_before: datetime,
) -> list[Client]:
    """Clients never verified or verified before the cutoff, oldest first."""
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM clients
        WHERE vip_checked_at IS NULL OR vip_checked_at < %s
        ORDER BY vip_checked_at ASC NULLS FIRST, id
        """,
        (verified_before,),
    )
    return [_row_to_client(row) for row in rows]
