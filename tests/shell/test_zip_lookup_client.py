"""Tests for the ZIP code lookup client.

Uses the `responses` library to mock HTTP requests.
"""

import pytest
import requests
import responses

from strike_alerts.core.errors import NotFound, ServiceUnavailable, ValidationError
from strike_alerts.shell.zip_lookup_client import ZipLookupClient, parse_lookup_response


BASE_URL = "https://zip.example.com/us"

BEVERLY_HILLS = {
    "post code": "90210",
    "country": "United States",
    "places": [
        {
            "place name": "Beverly Hills",
            "state": "California",
            "state abbreviation": "CA",
            "latitude": "34.0901",
            "longitude": "-118.4065",
        }
    ],
}


class TestParseLookupResponse:
    """Tests for parse_lookup_response() function."""

    def test_parses_first_place(self):
        """City, state and coordinates come from the first place."""
        result = parse_lookup_response("90210", BEVERLY_HILLS)

        assert result.city == "Beverly Hills"
        assert result.region == "CA"
        assert result.latitude == pytest.approx(34.0901)
        assert result.longitude == pytest.approx(-118.4065)

    def test_no_places(self):
        """Empty places gives None."""
        assert parse_lookup_response("90210", {"places": []}) is None

    def test_bad_coordinates(self):
        """Unparseable coordinates give None."""
        data = {"places": [{"place name": "X", "latitude": "n/a", "longitude": "0"}]}
        assert parse_lookup_response("90210", data) is None


class TestResolve:
    """Tests for ZipLookupClient.resolve()."""

    @responses.activate
    def test_resolves_zip_plus_four_by_base(self):
        """ZIP+4 is looked up by its 5-digit base and keeps the full code."""
        responses.add(responses.GET, f"{BASE_URL}/90210", json=BEVERLY_HILLS)

        result = ZipLookupClient(BASE_URL).resolve("90210-1234")

        assert result.postal_code == "90210-1234"
        assert result.city == "Beverly Hills"

    def test_malformed_code_rejected_without_request(self):
        """Malformed codes raise ValidationError before any I/O."""
        with pytest.raises(ValidationError):
            ZipLookupClient(BASE_URL).resolve("ABCDE")

    @responses.activate
    def test_unknown_code(self):
        """404 raises NotFound."""
        responses.add(responses.GET, f"{BASE_URL}/00000", status=404, json={})

        with pytest.raises(NotFound):
            ZipLookupClient(BASE_URL).resolve("00000")

    @responses.activate
    def test_server_error(self):
        """5xx raises ServiceUnavailable."""
        responses.add(responses.GET, f"{BASE_URL}/90210", status=503)

        with pytest.raises(ServiceUnavailable):
            ZipLookupClient(BASE_URL).resolve("90210")

    @responses.activate
    def test_timeout(self):
        """Timeouts raise ServiceUnavailable."""
        responses.add(responses.GET, f"{BASE_URL}/90210", body=requests.Timeout())

        with pytest.raises(ServiceUnavailable, match="timed out"):
            ZipLookupClient(BASE_URL).resolve("90210")
