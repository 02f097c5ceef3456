"""Time utilities for consistent timestamp handling."""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def start_of_day_utc(day: date) -> datetime:
    """Return 00:00 UTC of day as an aware datetime.

    Date-only check-in values are anchored here when compared to instants.
    """
    return datetime.combine(day, time.min, tzinfo=timezone.utc)
