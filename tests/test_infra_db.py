"""Tests for database layer."""

import os
from unittest.mock import MagicMock, patch

import pytest


class TestGetConnPasswordFallback:
    """DB_PASSWORD fallback in get_conn() (no real DB needed)."""

    def test_db_password_fallback_dsn_without_password(self):
        from hotelbooking.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=db user=u host=h port=5432", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("hotelbooking.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with(
                "dbname=db user=u host=h port=5432",
                password="from-env",
            )

    def test_db_password_not_used_when_dsn_has_password(self):
        from hotelbooking.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=db user=u password=from-dsn host=h", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("hotelbooking.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("dbname=db user=u password=from-dsn host=h")

    def test_db_password_fallback_url_without_password(self):
        from hotelbooking.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u@h/db", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("hotelbooking.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u@h/db", password="from-env")

    def test_missing_database_url(self):
        from hotelbooking.infra.db import get_conn

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_conn()


class TestTxnWithMockConnection:
    def test_commits_on_success(self):
        from hotelbooking.infra.db import txn

        conn = MagicMock()
        with txn(conn) as cur:
            cur.execute("SELECT 1")

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_not_called()

    def test_domain_error_rolls_back(self):
        from hotelbooking.domain.errors import ConflictError
        from hotelbooking.infra.db import txn

        conn = MagicMock()
        with pytest.raises(ConflictError):
            with txn(conn):
                raise ConflictError("taken")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_owned_connection_closed(self):
        from hotelbooking.infra.db import txn

        conn = MagicMock()
        with patch("hotelbooking.infra.db.get_conn", return_value=conn):
            with txn():
                pass

        conn.close.assert_called_once()


class TestConstraintName:
    def test_reads_diag(self):
        from hotelbooking.infra.db import constraint_name

        exc = MagicMock()
        exc.diag.constraint_name = "reservations_no_active_overlap"
        assert constraint_name(exc) == "reservations_no_active_overlap"

    def test_no_diag(self):
        from hotelbooking.infra.db import constraint_name

        assert constraint_name(ValueError("x")) is None


def test_for_update_nowait_skip_locked_exclusive():
    from hotelbooking.infra.db import for_update

    with pytest.raises(ValueError, match="Cannot use both"):
        for_update(MagicMock(), "SELECT 1", nowait=True, skip_locked=True)


def test_for_update_appends_clause():
    from hotelbooking.infra.db import for_update

    cur = MagicMock()
    for_update(cur, "SELECT id FROM rooms WHERE id = %s;", (7,), skip_locked=True)
    cur.execute.assert_called_once_with("SELECT id FROM rooms WHERE id = %s FOR UPDATE SKIP LOCKED", (7,))


# Skip integration tests if DATABASE_URL is not set
_skip_no_db = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping DB integration tests",
)


@_skip_no_db
class TestTxn:
    """txn() against a real database."""

    def test_rollback_on_exception(self):
        from hotelbooking.infra.db import get_conn, txn

        conn = get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("CREATE TEMP TABLE test_rollback (id serial, val text)")
            conn.commit()

            with pytest.raises(ValueError):
                with txn(conn) as cur:
                    cur.execute("INSERT INTO test_rollback (val) VALUES (%s)", ("bad",))
                    raise ValueError("rollback test")

            with conn.cursor() as cur:
                cur.execute("SELECT count(*) FROM test_rollback")
                assert cur.fetchone()[0] == 0
        finally:
            conn.close()

    def test_fetch_helpers(self):
        from hotelbooking.infra.db import fetchall, fetchone, txn

        with txn() as cur:
            assert fetchone(cur, "SELECT %s::int", (42,))[0] == 42
            rows = fetchall(cur, "SELECT generate_series(1, 3)")
            assert [r[0] for r in rows] == [1, 2, 3]
