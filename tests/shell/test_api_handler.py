"""Tests for the Web API handler.

Requests are built with Flask's test request context; the orchestrator
runs over an in-memory store.
"""

from datetime import datetime, timezone
from itertools import count
from unittest.mock import Mock

import pytest
from flask import Flask, request

from strike_alerts.api_handler import handle_request
from strike_alerts.core.config import Config
from strike_alerts.core.errors import ServiceUnavailable
from strike_alerts.orchestrator import Orchestrator
from strike_alerts.shell.delivery import LogDeliveryClient
from strike_alerts.shell.memory_store import InMemoryStore


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

app = Flask(__name__)


@pytest.fixture
def orchestrator():
    ids = count(1)
    return Orchestrator(
        Config(),
        store=InMemoryStore(),
        zip_client=Mock(),
        delivery_client=LogDeliveryClient(),
        clock=lambda: NOW,
        id_factory=lambda: f"id-{next(ids)}",
    )


def call(orchestrator, method, path, json=None, query_string=None):
    """Send one request through the handler."""
    with app.test_request_context(path, method=method, json=json, query_string=query_string):
        return handle_request(request, orchestrator)


def register_chicago(orchestrator, user_id="user-1"):
    return call(orchestrator, "POST", f"/users/{user_id}/location", json={
        "postal_code": "60601",
        "latitude": 41.8781,
        "longitude": -87.6298,
        "city": "Chicago",
        "region": "IL",
    })


class TestHealth:
    """Tests for GET /health."""

    def test_ok(self, orchestrator):
        """Health check reports ok."""
        response = call(orchestrator, "GET", "/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "ok"


class TestLocationRoutes:
    """Tests for location routes."""

    def test_register_and_get(self, orchestrator):
        """POST creates an active location that GET returns."""
        created = register_chicago(orchestrator)
        fetched = call(orchestrator, "GET", "/users/user-1/location")

        assert created.status_code == 201
        assert fetched.status_code == 200
        assert fetched.get_json()["id"] == created.get_json()["id"]
        assert fetched.get_json()["is_active"] is True

    def test_invalid_zip_is_400(self, orchestrator):
        """Malformed postal codes are rejected."""
        response = call(orchestrator, "POST", "/users/user-1/location", json={"postal_code": "ABCDE"})

        assert response.status_code == 400
        assert response.get_json()["status"] == "error"

    def test_latitude_without_longitude_is_400(self, orchestrator):
        """Coordinates must be supplied as a pair."""
        response = call(
            orchestrator,
            "POST",
            "/users/user-1/location",
            json={"postal_code": "60601", "latitude": 41.8781},
        )

        assert response.status_code == 400
        assert "together" in response.get_json()["message"]

    def test_missing_postal_code_is_400(self, orchestrator):
        """postal_code is required."""
        response = call(orchestrator, "POST", "/users/user-1/location", json={})
        assert response.status_code == 400

    def test_no_location_is_404(self, orchestrator):
        """Unknown users have no location."""
        assert call(orchestrator, "GET", "/users/nobody/location").status_code == 404

    def test_patch_location(self, orchestrator):
        """PATCH changes only the supplied fields."""
        location_id = register_chicago(orchestrator).get_json()["id"]

        response = call(orchestrator, "PATCH", f"/locations/{location_id}", json={"city": "Evanston"})

        assert response.status_code == 200
        assert response.get_json()["city"] == "Evanston"
        assert response.get_json()["postal_code"] == "60601"

    def test_patch_missing_location_is_404(self, orchestrator):
        """PATCH on an unknown location is 404."""
        response = call(orchestrator, "PATCH", "/locations/missing", json={"city": "X"})
        assert response.status_code == 404

    def test_delete_location(self, orchestrator):
        """DELETE deactivates the active location."""
        register_chicago(orchestrator)

        response = call(orchestrator, "DELETE", "/users/user-1/location")

        assert response.status_code == 200
        assert response.get_json()["is_active"] is False
        assert call(orchestrator, "GET", "/users/user-1/location").status_code == 404

    def test_zip_lookup_unavailable_is_503(self, orchestrator):
        """Lookup outages map to 503."""
        orchestrator.zip_client.resolve.side_effect = ServiceUnavailable("ZIP lookup timed out")
        assert call(orchestrator, "GET", "/zip/60601").status_code == 503


class TestStrikeRoutes:
    """Tests for strike and delivery routes."""

    def test_ingest_and_deliver(self, orchestrator):
        """A nearby strike creates a notification that a delivery pass sends."""
        register_chicago(orchestrator)

        ingested = call(orchestrator, "POST", "/strikes", json={
            "latitude": 41.8825,
            "longitude": -87.6231,
            "timestamp": "2024-06-01T11:30:00Z",
            "intensity": 2.5,
        })

        assert ingested.status_code == 201
        assert [n["user_id"] for n in ingested.get_json()["notifications"]] == ["user-1"]

        delivered = call(orchestrator, "POST", "/delivery-pass")
        assert delivered.get_json()["sent"] == 1

        notifications = call(orchestrator, "GET", "/users/user-1/notifications").get_json()
        assert notifications[0]["status"] == "sent"

        strikes = call(orchestrator, "GET", "/users/user-1/strikes", query_string={"hours_back": "2"})
        assert len(strikes.get_json()) == 1

    def test_out_of_bounds_strike_is_400(self, orchestrator):
        """Strikes outside the continental US are rejected."""
        response = call(orchestrator, "POST", "/strikes", json={
            "latitude": 60.0,
            "longitude": -87.6231,
            "timestamp": "2024-06-01T11:30:00Z",
            "intensity": 2.5,
        })
        assert response.status_code == 400

    def test_unknown_route_is_404(self, orchestrator):
        """Unknown paths are 404."""
        assert call(orchestrator, "GET", "/nope").status_code == 404
