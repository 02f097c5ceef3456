"""Tests for the scheduled maintenance entrypoint."""

import importlib.util
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from hotelbooking.domain.errors import InvalidRequestError

_SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "run_maintenance.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("run_maintenance", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_requires_database_url(script, monkeypatch, capsys):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    assert script.main([]) == 1
    assert "DATABASE_URL" in capsys.readouterr().err


def test_runs_sweep_only_by_default(script, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", "dbname=test")
    service = MagicMock()
    service.complete_past_reservations.return_value = {"completed": 2}

    with patch.object(script, "build_reservation_service", return_value=service):
        assert script.main([]) == 0

    service.complete_past_reservations.assert_called_once_with(None)
    service.clients.refresh_stale_vip_statuses.assert_not_called()
    assert json.loads(capsys.readouterr().out) == {"completion": {"completed": 2}}


def test_refresh_vip_flag(script, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", "dbname=test")
    service = MagicMock()
    service.complete_past_reservations.return_value = {"completed": 0}
    service.clients.refresh_stale_vip_statuses.return_value = {"total": 1, "updated": 1, "degraded": 0}

    with patch.object(script, "build_reservation_service", return_value=service):
        assert script.main(["--refresh-vip", "--batch-size", "5", "--today", "2026-03-01"]) == 0

    service.clients.refresh_stale_vip_statuses.assert_called_once_with(batch_size=5)
    summary = json.loads(capsys.readouterr().out)
    assert summary["vip_refresh"]["updated"] == 1


def test_future_today_exits_nonzero(script, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", "dbname=test")
    service = MagicMock()
    service.complete_past_reservations.side_effect = InvalidRequestError("Sweep date cannot be in the future")

    with patch.object(script, "build_reservation_service", return_value=service):
        assert script.main(["--today", "2099-01-01"]) == 2

    assert "future" in capsys.readouterr().err
