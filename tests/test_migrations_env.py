"""Tests for the Alembic DSN-to-URL helpers."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from migrations.env_helpers import get_database_url, libpq_dsn_to_url, parse_libpq_dsn


class TestParseLibpqDsn:
    def test_simple_pairs(self):
        assert parse_libpq_dsn("dbname=hotel user=app host=db") == {
            "dbname": "hotel",
            "user": "app",
            "host": "db",
        }

    def test_spaces_around_equals(self):
        assert parse_libpq_dsn("dbname = hotel  port= 5433")["port"] == "5433"

    def test_quoted_value_with_escape(self):
        assert parse_libpq_dsn(r"password='it\'s a secret'")["password"] == "it's a secret"

    def test_malformed(self):
        with pytest.raises(ValueError, match="malformed DSN"):
            parse_libpq_dsn("dbname")


class TestLibpqDsnToUrl:
    def test_unix_socket(self):
        dsn = "dbname=hotel user=svc password=s3cret host=/cloudsql/proj:region:inst"
        assert libpq_dsn_to_url(dsn) == (
            "postgresql+psycopg2://svc:s3cret@/hotel"
            "?host=%2Fcloudsql%2Fproj%3Aregion%3Ainst"
        )

    def test_tcp_host(self):
        dsn = "dbname=hotel user=admin password=pw host=localhost port=5432"
        assert libpq_dsn_to_url(dsn) == "postgresql+psycopg2://admin:pw@localhost:5432/hotel"

    def test_default_port(self):
        assert libpq_dsn_to_url("dbname=db user=u password=p host=myhost") == (
            "postgresql+psycopg2://u:p@myhost:5432/db"
        )

    def test_special_chars_encoded(self):
        result = libpq_dsn_to_url("dbname=db user=u@domain password=p@ss=word host=h")
        assert "u%40domain" in result
        assert "p%40ss%3Dword" in result

    def test_db_password_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        assert "from-env" in libpq_dsn_to_url("dbname=db user=u host=h")

    def test_dsn_password_wins(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        result = libpq_dsn_to_url("dbname=db user=u password=from-dsn host=h")
        assert "from-dsn" in result
        assert "from-env" not in result


class TestGetDatabaseUrl:
    def test_missing_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL is required"):
                get_database_url()

    @pytest.mark.parametrize("scheme", ["postgres", "postgresql", "postgresql+psycopg2"])
    def test_scheme_normalized_once(self, scheme):
        with patch.dict(os.environ, {"DATABASE_URL": f"{scheme}://u:p@h/db"}, clear=True):
            result = get_database_url()
        assert result == "postgresql+psycopg2://u:p@h/db"

    def test_url_db_password_fallback(self):
        env = {"DATABASE_URL": "postgresql://u@h:5432/db", "DB_PASSWORD": "secret"}
        with patch.dict(os.environ, env, clear=True):
            assert get_database_url() == "postgresql+psycopg2://u:secret@h:5432/db"

    def test_dsn_converted(self):
        env = {"DATABASE_URL": "dbname=hotel user=sa password=pw host=db"}
        with patch.dict(os.environ, env, clear=True):
            assert get_database_url() == "postgresql+psycopg2://sa:pw@db:5432/hotel"
