"""Domain records for rooms, clients and reservations.

Rows are mapped into these frozen dataclasses by the repositories. Field
normalization happens before construction (see normalization.py); the
records themselves never rewrite their values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from hotelbooking.domain import lifecycle
from hotelbooking.infra.time import utc_now

RoomStatus = Literal["available", "maintenance", "out_of_order"]

ROOM_AVAILABLE: RoomStatus = "available"

STANDARD_TIER = "standard"

MAX_GUESTS = 20


@dataclass(frozen=True)
class RoomClass:
    id: int
    name: str
    base_rate: Decimal
    max_occupancy: int
    amenities: list[str] = field(default_factory=list)
    description: str | None = None


@dataclass(frozen=True)
class Room:
    id: int
    property_id: int
    room_number: str
    status: str
    room_class: RoomClass
    floor: int | None = None
    property_name: str | None = None

    def is_bookable(self) -> bool:
        """Room status gates reservations independently of dates."""
        return self.status == ROOM_AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "property_id": self.property_id,
            "property_name": self.property_name,
            "room_number": self.room_number,
            "floor": self.floor,
            "status": self.status,
            "room_class": {
                "id": self.room_class.id,
                "name": self.room_class.name,
                "description": self.room_class.description,
                "base_rate": float(self.room_class.base_rate),
                "max_occupancy": self.room_class.max_occupancy,
                "amenities": list(self.room_class.amenities),
            },
        }


@dataclass(frozen=True)
class VipStatus:
    """Outcome of a VIP lookup (fresh, cached or degraded)."""

    is_vip: bool
    tier: str
    discount: Decimal


STANDARD_STATUS = VipStatus(is_vip=False, tier=STANDARD_TIER, discount=Decimal("0"))


@dataclass(frozen=True)
class ClientInfo:
    """Client identity fields supplied with a booking request."""

    first_name: str
    last_name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class Client:
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None
    is_vip: bool
    vip_tier: str
    vip_discount: Decimal
    vip_checked_at: datetime | None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "is_vip": self.is_vip,
            "vip_tier": self.vip_tier,
            "vip_discount": float(self.vip_discount),
            "vip_checked_at": self.vip_checked_at.isoformat() if self.vip_checked_at else None,
        }


@dataclass(frozen=True)
class Reservation:
    """A reservation row.

    `id` is the internal sequential key and never leaves the engine;
    callers address reservations by `token` (a random UUID).
    """

    id: int
    token: str
    room_id: int
    client_id: int
    check_in_date: date
    check_out_date: date
    guest_count: int
    original_price: Decimal
    total_price: Decimal
    discount_percent_applied: Decimal
    status: str
    special_requests: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    room: Room | None = None

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def savings_amount(self) -> Decimal:
        return self.original_price - self.total_price

    def can_be_cancelled(self, now: datetime | None = None) -> bool:
        return lifecycle.can_cancel(self.status, self.check_in_date, now or utc_now())

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "reservation_token": self.token,
            "room_id": self.room_id,
            "client_id": self.client_id,
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "nights": self.nights,
            "guest_count": self.guest_count,
            "original_price": float(self.original_price),
            "total_price": float(self.total_price),
            "discount_percent_applied": float(self.discount_percent_applied),
            "savings_amount": float(self.savings_amount),
            "status": self.status,
            "special_requests": self.special_requests,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "can_be_cancelled": self.can_be_cancelled(now),
        }
        if self.room is not None:
            data["room"] = self.room.to_dict()
        return data
