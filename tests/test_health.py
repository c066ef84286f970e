"""Tests for health and info endpoints."""

from lingoleap import __version__


class TestHealth:
    """Tests for service status endpoints."""

    def test_health(self, client):
        """Health check returns ok with the package version."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert "timestamp" in data

    def test_info(self, client):
        response = client.get("/info")
        assert response.status_code == 200
        assert response.json()["translation_providers"] == ["Demo Translation"]
