"""Tests for worker maintenance and internal endpoints."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from hotelbooking.api.dependencies import get_reservation_service
from hotelbooking.api.factory import create_app
from hotelbooking.domain.errors import InvalidRequestError


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    app = create_app(role="worker")
    app.dependency_overrides[get_reservation_service] = lambda: service
    return TestClient(app)


class TestCompleteReservations:
    def test_runs_sweep(self, client, service):
        service.complete_past_reservations.return_value = {"completed": 3}

        resp = client.post("/tasks/maintenance/complete-reservations")

        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "completed": 3}
        service.complete_past_reservations.assert_called_once_with(None)

    def test_explicit_day(self, client, service):
        service.complete_past_reservations.return_value = {"completed": 0}

        client.post("/tasks/maintenance/complete-reservations", params={"today": "2026-03-01"})

        service.complete_past_reservations.assert_called_once_with(date(2026, 3, 1))

    def test_future_day_is_400(self, client, service):
        service.complete_past_reservations.side_effect = InvalidRequestError(
            "Sweep date cannot be in the future", today="2099-01-01"
        )

        resp = client.post("/tasks/maintenance/complete-reservations", params={"today": "2099-01-01"})

        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "invalid_request"


class TestRefreshVip:
    def test_refresh(self, client, service):
        service.clients.refresh_stale_vip_statuses.return_value = {"total": 5, "updated": 4, "degraded": 1}

        resp = client.post("/tasks/maintenance/refresh-vip", params={"batch_size": 2})

        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "total": 5, "updated": 4, "degraded": 1}
        service.clients.refresh_stale_vip_statuses.assert_called_once_with(batch_size=2)

    def test_batch_size_bounds(self, client, service):
        assert client.post("/tasks/maintenance/refresh-vip", params={"batch_size": 0}).status_code == 422


class TestVipProviderStatus:
    def test_reports_probe(self, client, service):
        service.clients.resolver.provider.service_status.return_value = {
            "available": False,
            "error": "ConnectionError",
            "url": "http://mock-vip-api:3001/check-vip",
        }

        resp = client.get("/internal/vip-provider")

        assert resp.status_code == 200
        assert resp.json()["available"] is False
