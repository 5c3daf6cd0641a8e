"""
Smoke tests for the main blueprint routes.

These verify that the application starts up correctly and the health
check endpoint responds.
"""


class TestHealthCheck:
    """Tests for the health check endpoint."""

    def test_health_check_returns_200(self, client):
        """The health check should return HTTP 200 with a healthy status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy", "database": "connected"}

    def test_unknown_route_is_json(self, client):
        """HTTP errors are rendered as JSON bodies."""
        response = client.get("/no-such-page")
        assert response.status_code == 404
        assert response.get_json()["error"] == "NOT_FOUND"
