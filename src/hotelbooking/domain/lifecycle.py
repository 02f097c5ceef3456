"""Reservation lifecycle rules.

    active ──cancel (more than 24h before check-in)──▶ cancelled
    active ──sweep (check-out date passed)──────────▶ completed

cancelled and completed are terminal: nothing moves a reservation out of
them, and asking to do so raises LifecycleViolationError instead of being
a silent no-op.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Literal

from hotelbooking.domain.errors import LifecycleViolationError
from hotelbooking.infra.time import start_of_day_utc

ReservationStatus = Literal["active", "cancelled", "completed"]

ACTIVE: ReservationStatus = "active"
CANCELLED: ReservationStatus = "cancelled"
COMPLETED: ReservationStatus = "completed"

ALL_STATUSES: tuple[ReservationStatus, ...] = (ACTIVE, CANCELLED, COMPLETED)

# Statuses that count as revenue in stats
REVENUE_STATUSES: tuple[ReservationStatus, ...] = (ACTIVE, COMPLETED)

CANCELLATION_CUTOFF = timedelta(hours=24)

_TRANSITIONS: dict[str, frozenset[str]] = {
    ACTIVE: frozenset({CANCELLED, COMPLETED}),
    CANCELLED: frozenset(),
    COMPLETED: frozenset(),
}


def check_in_instant(check_in_date: date) -> datetime:
    """Instant the stay starts, used for the cancellation cutoff."""
    return start_of_day_utc(check_in_date)


def within_cancellation_cutoff(check_in_date: date, now: datetime) -> bool:
    """True when 24 hours or less remain until check-in."""
    return check_in_instant(check_in_date) - now <= CANCELLATION_CUTOFF


def can_cancel(status: str, check_in_date: date, now: datetime) -> bool:
    return status == ACTIVE and not within_cancellation_cutoff(check_in_date, now)


def assert_transition(current: str, target: str, *, token: str | None = None) -> None:
    """Raise LifecycleViolationError unless current -> target is legal."""
    allowed = _TRANSITIONS.get(current)
    if allowed is None:
        raise ValueError(f"Unknown reservation status: {current!r}")
    if target not in allowed:
        raise LifecycleViolationError(
            f"Reservation is {current}; cannot move to {target}",
            reservation_token=token,
            status=current,
        )


def assert_mutable(current: str, *, token: str | None = None) -> None:
    """Raise LifecycleViolationError unless the reservation is still active."""
    if current != ACTIVE:
        raise LifecycleViolationError(
            f"Only active reservations can be modified (status is {current})",
            reservation_token=token,
            status=current,
        )


def assert_cancellable(
    current: str,
    check_in_date: date,
    now: datetime,
    *,
    token: str | None = None,
) -> None:
    """Guard for active -> cancelled, including the 24h cutoff."""
    assert_transition(current, CANCELLED, token=token)
    if within_cancellation_cutoff(check_in_date, now):
        raise LifecycleViolationError(
            "Reservation cannot be cancelled less than 24 hours before check-in",
            reservation_token=token,
            status=current,
        )
