"""Unit tests for room availability checks.

These tests mock the database cursor so they run without Postgres.
"""

import logging
from datetime import date

import pytest

from hotelbooking.domain.availability import (
    assert_available,
    find_conflicting_reservation,
    is_available,
)
from hotelbooking.domain.errors import ConflictError


def _no_conflict(cur):
    cur.fetchone.return_value = None


def _with_conflict(cur, reservation_id=99, check_in=date(2026, 3, 10), check_out=date(2026, 3, 15)):
    cur.fetchone.return_value = (reservation_id, check_in, check_out)


class TestFindConflictingReservation:
    def test_no_overlap_returns_none(self, cur):
        _no_conflict(cur)

        result = find_conflicting_reservation(
            cur, room_id=7, check_in=date(2026, 3, 1), check_out=date(2026, 3, 5)
        )

        assert result is None
        cur.execute.assert_called_once()

    def test_only_active_reservations_hold_a_room(self, cur):
        _no_conflict(cur)

        find_conflicting_reservation(cur, room_id=7, check_in=date(2026, 3, 1), check_out=date(2026, 3, 5))

        query, params = cur.execute.call_args[0]
        assert "status = %s" in query
        assert params[1] == "active"

    def test_half_open_interval_params(self, cur):
        """Back-to-back stays: the strict inequalities get the new dates swapped."""
        _no_conflict(cur)

        find_conflicting_reservation(
            cur, room_id=7, check_in=date(2026, 3, 15), check_out=date(2026, 3, 20)
        )

        query, params = cur.execute.call_args[0]
        assert "check_in_date < %s" in query
        assert "check_out_date > %s" in query
        assert params[2] == date(2026, 3, 20)  # existing check-in < new check-out
        assert params[3] == date(2026, 3, 15)  # existing check-out > new check-in

    def test_returns_conflict_tuple(self, cur):
        _with_conflict(cur, 12, date(2026, 3, 10), date(2026, 3, 15))

        result = find_conflicting_reservation(
            cur, room_id=7, check_in=date(2026, 3, 12), check_out=date(2026, 3, 18)
        )

        assert result == (12, date(2026, 3, 10), date(2026, 3, 15))

    def test_exclude_adds_id_filter(self, cur):
        _no_conflict(cur)

        find_conflicting_reservation(
            cur,
            room_id=7,
            check_in=date(2026, 3, 1),
            check_out=date(2026, 3, 5),
            exclude_reservation_id=42,
        )

        query, params = cur.execute.call_args[0]
        assert "id <> %s" in query
        assert params[-1] == 42

    def test_without_exclude_no_id_filter(self, cur):
        _no_conflict(cur)

        find_conflicting_reservation(cur, room_id=7, check_in=date(2026, 3, 1), check_out=date(2026, 3, 5))

        query = cur.execute.call_args[0][0]
        assert "id <> %s" not in query

    def test_dates_are_bound_parameters(self, cur):
        _no_conflict(cur)

        find_conflicting_reservation(cur, room_id=7, check_in=date(2026, 3, 1), check_out=date(2026, 3, 5))

        query = cur.execute.call_args[0][0]
        assert "2026" not in query


class TestIsAvailable:
    def test_true_without_conflict(self, cur):
        _no_conflict(cur)
        assert is_available(cur, 7, date(2026, 3, 1), date(2026, 3, 5)) is True

    def test_false_with_conflict(self, cur):
        _with_conflict(cur)
        assert is_available(cur, 7, date(2026, 3, 12), date(2026, 3, 14)) is False


class TestAssertAvailable:
    def test_passes_without_conflict(self, cur):
        _no_conflict(cur)
        assert_available(cur, room_id=7, check_in=date(2026, 3, 1), check_out=date(2026, 3, 5))

    def test_raises_conflict(self, cur):
        _with_conflict(cur, 12, date(2026, 3, 10), date(2026, 3, 15))

        with pytest.raises(ConflictError) as exc_info:
            assert_available(cur, room_id=7, check_in=date(2026, 3, 12), check_out=date(2026, 3, 18))

        assert exc_info.value.code == "conflict"
        assert exc_info.value.details["existing_check_in"] == "2026-03-10"
        assert exc_info.value.details["existing_check_out"] == "2026-03-15"

    def test_internal_id_not_exposed(self, cur):
        _with_conflict(cur, 12)

        with pytest.raises(ConflictError) as exc_info:
            assert_available(cur, room_id=7, check_in=date(2026, 3, 12), check_out=date(2026, 3, 18))

        assert 12 not in exc_info.value.details.values()

    def test_logs_warning(self, cur, caplog):
        _with_conflict(cur)

        with caplog.at_level(logging.WARNING, logger="hotelbooking.domain.availability"):
            with pytest.raises(ConflictError):
                assert_available(cur, room_id=7, check_in=date(2026, 3, 12), check_out=date(2026, 3, 18))

        assert any("room conflict detected" in r.message for r in caplog.records)
