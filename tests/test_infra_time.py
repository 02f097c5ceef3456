"""Tests for time utilities."""

from datetime import date, datetime, timezone


class TestUtcNow:
    def test_returns_utc_datetime(self):
        from hotelbooking.infra.time import utc_now

        assert utc_now().tzinfo == timezone.utc

    def test_returns_current_time(self):
        from hotelbooking.infra.time import utc_now

        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


def test_start_of_day_utc():
    from hotelbooking.infra.time import start_of_day_utc

    assert start_of_day_utc(date(2026, 3, 10)) == datetime(2026, 3, 10, tzinfo=timezone.utc)


def test_utc_today_matches_utc_now():
    from hotelbooking.infra.time import utc_now, utc_today

    assert utc_today() in {utc_now().date(), datetime.now(timezone.utc).date()}
