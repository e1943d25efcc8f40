"""Unit tests for health endpoints."""

from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK

from guestpass_api.main import app


class TestHealth:
    """Tests for /api/ping and /api/health."""

    def test_ping(self) -> None:
        response = TestClient(app).get("/api/ping")

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "guestpass-api"
        assert "timestamp" in data

    def test_health(self) -> None:
        response = TestClient(app).get("/api/health")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_health_is_cacheable(self) -> None:
        """Only the access routes are marked no-store."""
        response = TestClient(app).get("/api/health")
        assert "no-store" not in response.headers.get("cache-control", "")
