"""Reservation engine - the only writer of reservation rows.

Every mutation runs as one txn():

create:  resolve client → lock room → validate status/capacity
         → re-check availability → price → insert
cancel:  lock reservation → lifecycle + 24h guard → mark cancelled
update:  lock reservation → must be active → (dates changed) lock room,
         re-check availability excluding itself, reprice → persist changes

Any error rolls the transaction back. Two creates racing for the same room
serialize on the room row lock; if anything still gets past the
application check, the storage overlap guards reject the write and the
repository raises ConflictError.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, ContextManager

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain import lifecycle
from hotelbooking.domain.availability import assert_available
from hotelbooking.domain.clients import ClientDirectory
from hotelbooking.domain.errors import InvalidRequestError, LifecycleViolationError, NotFoundError
from hotelbooking.domain.models import MAX_GUESTS, Client, ClientInfo, Reservation, Room
from hotelbooking.domain.pricing import PriceBreakdown, count_nights, price
from hotelbooking.domain.rooms import search_available_rooms
from hotelbooking.domain.stats import booking_stats
from hotelbooking.domain.vip import HttpVipStatusProvider, VipStatusProvider, VipStatusResolver
from hotelbooking.infra.db import txn
from hotelbooking.infra.repositories import clients_repository, reservations_repository, rooms_repository
from hotelbooking.infra.time import utc_now
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import email_fingerprint, safe_log_context

logger = get_logger(__name__)

TxnFactory = Callable[[], ContextManager[PgCursor]]


@dataclass(frozen=True)
class BookingRequest:
    """Validated booking creation input."""

    client_info: ClientInfo
    room_id: int
    check_in_date: date
    check_out_date: date
    guest_count: int
    special_requests: str | None = None


@dataclass(frozen=True)
class ReservationChanges:
    """Partial update; None means "leave unchanged"."""

    check_in_date: date | None = None
    check_out_date: date | None = None
    guest_count: int | None = None
    special_requests: str | None = None


@dataclass(frozen=True)
class BookingResult:
    reservation: Reservation
    client: Client
    pricing: PriceBreakdown
    vip_applied: bool
    client_created: bool
    vip_degraded: bool

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        return {
            "booking": self.reservation.to_dict(now),
            "pricing": {
                **self.pricing.to_dict(),
                "is_vip": self.vip_applied,
                "vip_tier": self.client.vip_tier if self.vip_applied else "standard",
            },
            "vip_applied": self.vip_applied,
        }


def _validate_guest_count(guest_count: int, room: Room | None = None) -> None:
    if guest_count < 1 or guest_count > MAX_GUESTS:
        raise InvalidRequestError(
            f"Guest count must be between 1 and {MAX_GUESTS}",
            guest_count=guest_count,
        )
    if room is not None and guest_count > room.room_class.max_occupancy:
        raise InvalidRequestError(
            f"Room can accommodate maximum {room.room_class.max_occupancy} guests",
            guest_count=guest_count,
            max_occupancy=room.room_class.max_occupancy,
        )


def _validate_token(token: str) -> str:
    try:
        return str(uuid.UUID(str(token)))
    except ValueError:
        raise NotFoundError("Reservation not found", reservation_token=token) from None


def _page(reservations: list[Reservation], total: int, limit: int, offset: int) -> dict[str, Any]:
    return {
        "reservations": reservations,
        "total": total,
        "page": offset // limit + 1,
        "total_pages": -(-total // limit),
    }


class ReservationService:
    """Transactional create/update/cancel plus the read side of reservations.

    Collaborators are injected: the client directory (and through it the
    VIP provider), the transaction factory and the clock.
    """

    def __init__(
        self,
        clients: ClientDirectory,
        *,
        txn_factory: TxnFactory = txn,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.clients = clients
        self._txn = txn_factory
        self._clock = clock

    # ── Writes ────────────────────────────────────────────────────────────

    def create_reservation(self, request: BookingRequest) -> BookingResult:
        """Book a room for a client.

        Raises:
            NotFoundError: Unknown room.
            InvalidRequestError: Bad dates, guest count or room status.
            ConflictError: Room already held for an overlapping range.
        """
        nights = count_nights(request.check_in_date, request.check_out_date)
        _validate_guest_count(request.guest_count)

        prepared = self.clients.prepare(request.client_info)
        token = str(uuid.uuid4())

        with self._txn() as cur:
            client, created = self.clients.resolve_in_txn(cur, prepared)

            room = rooms_repository.get_room(cur, request.room_id, lock=True)
            if room is None:
                raise NotFoundError("Room not found", room_id=request.room_id)
            if not room.is_bookable():
                raise InvalidRequestError(
                    "Room is not available for booking",
                    room_id=room.id,
                    room_status=room.status,
                )
            _validate_guest_count(request.guest_count, room)

            assert_available(
                cur,
                room_id=room.id,
                check_in=request.check_in_date,
                check_out=request.check_out_date,
            )

            vip = prepared.vip.status
            discount = vip.discount if vip.is_vip else Decimal("0")
            pricing = price(room.room_class.base_rate, nights, discount)

            reservation = reservations_repository.insert_reservation(
                cur,
                token=token,
                client_id=client.id,
                room_id=room.id,
                check_in=request.check_in_date,
                check_out=request.check_out_date,
                guest_count=request.guest_count,
                pricing=pricing,
                special_requests=request.special_requests,
            )

        vip_applied = vip.is_vip and pricing.discount > 0
        logger.info(
            "reservation created",
            extra={"extra_fields": safe_log_context(
                reservation_token=reservation.token,
                room_id=room.id,
                nights=nights,
                total_price=pricing.total,
                vip_applied=vip_applied,
                vip_degraded=prepared.vip.degraded,
                email_hash=email_fingerprint(client.email),
            )},
        )

        return BookingResult(
            reservation=replace(reservation, room=room),
            client=client,
            pricing=pricing,
            vip_applied=vip_applied,
            client_created=created,
            vip_degraded=prepared.vip.degraded,
        )

    def cancel_reservation(self, token: str, reason: str | None = None) -> Reservation:
        """Cancel an active reservation more than 24h before check-in.

        Raises:
            NotFoundError: Unknown token.
            LifecycleViolationError: Already terminal, or inside the cutoff.
        """
        token = _validate_token(token)
        now = self._clock()

        with self._txn() as cur:
            current = self._lock_reservation(cur, token)
            lifecycle.assert_cancellable(current.status, current.check_in_date, now, token=token)

            cancelled = reservations_repository.mark_cancelled(
                cur,
                reservation_id=current.id,
                reason=reason,
                cancelled_at=now,
            )
            if cancelled is None:
                raise LifecycleViolationError(
                    "Reservation is no longer active",
                    reservation_token=token,
                )

        logger.info(
            "reservation cancelled",
            extra={"extra_fields": safe_log_context(
                reservation_token=token,
                room_id=cancelled.room_id,
                has_reason=bool(reason),
            )},
        )
        return cancelled

    def update_reservation(self, token: str, changes: ReservationChanges) -> Reservation:
        """Apply a partial change to an active reservation.

        Date changes re-check availability (ignoring this reservation) and
        reprice with the client's current cached discount. Only changed
        columns are written.

        Raises:
            NotFoundError: Unknown token.
            LifecycleViolationError: Reservation is not active.
            InvalidRequestError: Bad dates or guest count.
            ConflictError: New dates overlap another active reservation.
        """
        token = _validate_token(token)

        with self._txn() as cur:
            current = self._lock_reservation(cur, token)
            lifecycle.assert_mutable(current.status, token=token)

            new_check_in = changes.check_in_date or current.check_in_date
            new_check_out = changes.check_out_date or current.check_out_date
            dates_changed = (
                new_check_in != current.check_in_date
                or new_check_out != current.check_out_date
            )
            guests_changed = (
                changes.guest_count is not None
                and changes.guest_count != current.guest_count
            )

            updates: dict[str, Any] = {}

            room: Room | None = None
            if dates_changed or guests_changed:
                room = rooms_repository.get_room(cur, current.room_id, lock=dates_changed)
                if room is None:
                    raise NotFoundError("Room not found", room_id=current.room_id)

            if guests_changed:
                _validate_guest_count(changes.guest_count, room)
                updates["guest_count"] = changes.guest_count

            if dates_changed:
                nights = count_nights(new_check_in, new_check_out)
                assert_available(
                    cur,
                    room_id=current.room_id,
                    check_in=new_check_in,
                    check_out=new_check_out,
                    exclude_reservation_id=current.id,
                )
                pricing = price(room.room_class.base_rate, nights, self._client_discount(cur, current))

                if new_check_in != current.check_in_date:
                    updates["check_in_date"] = new_check_in
                if new_check_out != current.check_out_date:
                    updates["check_out_date"] = new_check_out
                if pricing.original != current.original_price:
                    updates["original_price"] = pricing.original
                if pricing.total != current.total_price:
                    updates["total_price"] = pricing.total
                if pricing.discount != current.discount_percent_applied:
                    updates["discount_percent_applied"] = pricing.discount

            if (
                changes.special_requests is not None
                and changes.special_requests != current.special_requests
            ):
                updates["special_requests"] = changes.special_requests

            updated = reservations_repository.update_reservation_fields(cur, current, updates)

        logger.info(
            "reservation updated",
            extra={"extra_fields": safe_log_context(
                reservation_token=token,
                changed_fields=sorted(updates),
                dates_changed=dates_changed,
            )},
        )
        return updated

    def complete_past_reservations(self, today: date | None = None) -> dict[str, int]:
        """Maintenance sweep: active -> completed once check-out has passed.

        today may move the cutoff back (backfills) but never past the
        clock's current UTC date.

        Raises:
            InvalidRequestError: If today is in the future.
        """
        now = self._clock()
        if today is not None and today > now.date():
            raise InvalidRequestError(
                "Sweep date cannot be in the future",
                today=today.isoformat(),
            )
        today = today or now.date()

        with self._txn() as cur:
            completed = reservations_repository.complete_past_reservations(
                cur, today=today, completed_at=now
            )

        logger.info(
            "completion sweep finished",
            extra={"extra_fields": safe_log_context(completed=completed, today=today)},
        )
        return {"completed": completed}

    # ── Reads ─────────────────────────────────────────────────────────────

    def get_reservation(self, token: str) -> Reservation:
        token = _validate_token(token)
        with self._txn() as cur:
            reservation = reservations_repository.get_reservation_by_token(cur, token)
            if reservation is None:
                raise NotFoundError("Reservation not found", reservation_token=token)
            room = rooms_repository.get_room(cur, reservation.room_id)
        return replace(reservation, room=room)

    def list_client_reservations(
        self,
        client_id: int,
        *,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> dict[str, Any]:
        if status is not None and status not in lifecycle.ALL_STATUSES:
            raise InvalidRequestError(f"Unknown status: {status}", status=status)
        if limit < 1 or offset < 0:
            raise InvalidRequestError("limit must be >= 1 and offset >= 0")

        with self._txn() as cur:
            if clients_repository.get_client(cur, client_id) is None:
                raise NotFoundError("Client not found", client_id=client_id)
            reservations, total = reservations_repository.list_client_reservations(
                cur,
                client_id=client_id,
                status=status,
                limit=limit,
                offset=offset,
            )

        return _page(reservations, total, limit, offset)

    def search_reservations(
        self,
        *,
        client_id: int | None = None,
        room_id: int | None = None,
        status: str | None = None,
        check_in_from: date | None = None,
        check_in_to: date | None = None,
        vip_only: bool = False,
        sort: str = "created_at",
        order: str = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Filtered reservation listing across clients and rooms.

        Raises:
            InvalidRequestError: Unknown status, sort key or order, bad
                paging, or check_in_to before check_in_from.
        """
        if status is not None and status not in lifecycle.ALL_STATUSES:
            raise InvalidRequestError(f"Unknown status: {status}", status=status)
        if sort not in reservations_repository.SORT_COLUMNS:
            raise InvalidRequestError(f"Unknown sort key: {sort}", sort=sort)
        if order.lower() not in ("asc", "desc"):
            raise InvalidRequestError(f"Unknown sort order: {order}", order=order)
        if limit < 1 or offset < 0:
            raise InvalidRequestError("limit must be >= 1 and offset >= 0")
        if check_in_from and check_in_to and check_in_to < check_in_from:
            raise InvalidRequestError(
                "check_in_to must not be before check_in_from",
                check_in_from=check_in_from.isoformat(),
                check_in_to=check_in_to.isoformat(),
            )

        with self._txn() as cur:
            reservations, total = reservations_repository.search_reservations(
                cur,
                client_id=client_id,
                room_id=room_id,
                status=status,
                check_in_from=check_in_from,
                check_in_to=check_in_to,
                vip_only=vip_only,
                sort=sort,
                descending=order.lower() == "desc",
                limit=limit,
                offset=offset,
            )

        return _page(reservations, total, limit, offset)

    def find_available_rooms(
        self,
        *,
        property_id: int,
        check_in: date,
        check_out: date,
        guest_count: int | None = None,
        room_class_id: int | None = None,
        max_rate: Decimal | None = None,
    ) -> list[dict[str, Any]]:
        with self._txn() as cur:
            return search_available_rooms(
                cur,
                property_id=property_id,
                check_in=check_in,
                check_out=check_out,
                guest_count=guest_count,
                room_class_id=room_class_id,
                max_rate=max_rate,
            )

    def get_stats(
        self,
        *,
        property_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> dict[str, Any]:
        with self._txn() as cur:
            return booking_stats(
                cur,
                property_id=property_id,
                date_from=date_from,
                date_to=date_to,
            )

    # ── Helpers ───────────────────────────────────────────────────────────

    def _lock_reservation(self, cur: PgCursor, token: str) -> Reservation:
        reservation = reservations_repository.get_reservation_by_token(cur, token, lock=True)
        if reservation is None:
            raise NotFoundError("Reservation not found", reservation_token=token)
        return reservation

    def _client_discount(self, cur: PgCursor, reservation: Reservation) -> Decimal:
        client = clients_repository.get_client(cur, reservation.client_id)
        if client is None or not client.is_vip:
            return Decimal("0")
        return client.vip_discount


def build_reservation_service(provider: VipStatusProvider | None = None) -> ReservationService:
    """Wire the engine with the HTTP VIP provider (or a given one)."""
    resolver = VipStatusResolver(provider or HttpVipStatusProvider())
    return ReservationService(ClientDirectory(resolver))
