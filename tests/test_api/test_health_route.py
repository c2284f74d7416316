"""Tests for the /health and root endpoints."""

from pydantic import SecretStr

from syllabus_sync import __version__
from syllabus_sync.api.dependencies import get_fallback_config
from syllabus_sync.fallback.config import FallbackConfig


class TestHealth:
    """Tests for the health check."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["fallback_enabled"] is False
        assert data["fallback_configured"] is False
        assert "cost_guard" in data["stats"]

    def test_health_reports_configured_key(self, app, client):
        config = FallbackConfig(api_key=SecretStr("sk-test"))
        app.dependency_overrides[get_fallback_config] = lambda: config
        data = client.get("/health").json()
        assert data["fallback_enabled"] is True
        assert data["fallback_configured"] is True

    def test_stats_count_requests(self, client):
        client.post("/parse", json={"text": "Quiz 1 on Sept 19, 2025", "courseCode": "CS101"})
        assert client.get("/health").json()["stats"]["requests"] == 1


class TestRoot:
    """Tests for the root endpoint."""

    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == "Syllabus Sync API"
        assert data["docs"] == "/docs"
