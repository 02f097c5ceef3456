"""Shared test helper functions for hotel booking tests.

Regular functions (not fixtures) so both conftest.py and individual test
modules can build domain records and fake repository rows.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from hotelbooking.domain.models import Client, Reservation, Room, RoomClass

DEFAULT_TOKEN = "6f1c2a4e-8b3d-4f7a-9c2e-1d5b7a9e3f10"


def make_room(
    room_id: int = 7,
    *,
    status: str = "available",
    base_rate: Decimal = Decimal("100.00"),
    max_occupancy: int = 2,
) -> Room:
    return Room(
        id=room_id,
        property_id=1,
        room_number=f"{100 + room_id}",
        status=status,
        room_class=RoomClass(
            id=3,
            name="Deluxe",
            base_rate=base_rate,
            max_occupancy=max_occupancy,
            amenities=["wifi", "minibar"],
        ),
        floor=1,
        property_name="Seaside",
    )


def make_client(
    client_id: int = 11,
    *,
    email: str = "ana@example.com",
    is_vip: bool = False,
    vip_tier: str = "standard",
    vip_discount: Decimal = Decimal("0"),
    vip_checked_at: datetime | None = None,
) -> Client:
    return Client(
        id=client_id,
        first_name="Ana",
        last_name="Silva",
        email=email,
        phone=None,
        is_vip=is_vip,
        vip_tier=vip_tier,
        vip_discount=vip_discount,
        vip_checked_at=vip_checked_at,
    )


def make_reservation(
    *,
    reservation_id: int = 42,
    token: str = DEFAULT_TOKEN,
    room_id: int = 7,
    client_id: int = 11,
    check_in: date = date(2026, 3, 10),
    check_out: date = date(2026, 3, 13),
    guest_count: int = 2,
    original: Decimal = Decimal("300.00"),
    total: Decimal = Decimal("300.00"),
    discount: Decimal = Decimal("0"),
    status: str = "active",
    special_requests: str | None = None,
) -> Reservation:
    return Reservation(
        id=reservation_id,
        token=token,
        room_id=room_id,
        client_id=client_id,
        check_in_date=check_in,
        check_out_date=check_out,
        guest_count=guest_count,
        original_price=original,
        total_price=total,
        discount_percent_applied=discount,
        status=status,
        special_requests=special_requests,
        created_at=datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc),
        updated_at=datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc),
    )


def reservation_row(reservation: Reservation) -> tuple:
    """Repository row tuple (column order of reservations_repository._COLUMNS)."""
    return (
        reservation.id,
        uuid.UUID(reservation.token),
        reservation.room_id,
        reservation.client_id,
        reservation.check_in_date,
        reservation.check_out_date,
        reservation.guest_count,
        reservation.original_price,
        reservation.total_price,
        reservation.discount_percent_applied,
        reservation.status,
        reservation.special_requests,
        reservation.cancellation_reason,
        reservation.cancelled_at,
        reservation.completed_at,
        reservation.created_at,
        reservation.updated_at,
    )


def client_row(client: Client) -> tuple:
    """Repository row tuple (column order of clients_repository._COLUMNS)."""
    return (
        client.id,
        client.first_name,
        client.last_name,
        client.email,
        client.phone,
        client.is_vip,
        client.vip_tier,
        client.vip_discount,
        client.vip_checked_at,
    )
