"""
Tests for the health check endpoint.
"""

import pytest
from django.db import OperationalError


HEALTH_URL = "/health/"


@pytest.mark.django_db
class TestHealthCheck:
    """Tests for GET /health/."""

    def test_healthy(self, client):
        response = client.get(HEALTH_URL)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["channel_layer"] == "connected"

    def test_database_down(self, client, mocker):
        mocker.patch(
            "core.views.connection.cursor",
            side_effect=OperationalError("could not connect"),
        )

        response = client.get(HEALTH_URL)

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    def test_channel_layer_down_is_degraded_not_unhealthy(self, client, mocker):
        layer = mocker.MagicMock()
        layer.new_channel = mocker.AsyncMock(side_effect=ConnectionError("redis down"))
        mocker.patch("core.views.get_channel_layer", return_value=layer)

        response = client.get(HEALTH_URL)

        assert response.status_code == 200
        assert response.json()["channel_layer"] == "disconnected"
