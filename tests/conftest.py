"""Shared pytest fixtures for hotel booking tests."""
import sys
sys.dont_write_bytecode = True

from contextlib import contextmanager  # noqa: E402
from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from .helpers import make_client, make_reservation, make_room  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_service_singleton():
    """Reset the module-level engine so tests never share a wired service."""
    import hotelbooking.api.dependencies as deps

    deps._service = None
    yield
    deps._service = None


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


@pytest.fixture
def fake_txn(cur):
    """txn() replacement yielding the shared mocked cursor.

    Counts entries and records rollbacks so tests can assert on the
    transaction boundary.
    """
    state = {"entered": 0, "rolled_back": 0}

    @contextmanager
    def _txn():
        state["entered"] += 1
        try:
            yield cur
        except Exception:
            state["rolled_back"] += 1
            raise

    _txn.state = state
    return _txn


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def room():
    return make_room()


@pytest.fixture
def client_record():
    return make_client()


@pytest.fixture
def reservation():
    return make_reservation(check_in=date(2026, 3, 10), check_out=date(2026, 3, 13))


@pytest.fixture
def standard_rate():
    return Decimal("100.00")
