"""ZIP Code Lookup Client - Imperative Shell.

This module resolves US postal codes to coordinates, city and state via a
Zippopotam-compatible HTTP API. All I/O is contained here.

Response shape:
{
    "post code": "90210",
    "places": [
        {"place name": "Beverly Hills", "state abbreviation": "CA",
         "latitude": "34.0901", "longitude": "-118.4065", ...}
    ]
}
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from strike_alerts.core.errors import NotFound, ServiceUnavailable
from strike_alerts.core.location import base_postal_code, validate_postal_code


logger = logging.getLogger(__name__)


# Zippopotam.us US endpoint
ZIP_LOOKUP_BASE = "https://api.zippopotam.us/us"

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class ZipLookupResult:
    """Resolved postal code.

    Attributes:
        postal_code: The code as requested (may include +4)
        city: City name
        region: State abbreviation
        latitude: Centroid latitude
        longitude: Centroid longitude
    """
    postal_code: str
    city: str
    region: str
    latitude: float
    longitude: float


def parse_lookup_response(postal_code: str, data: dict[str, Any]) -> ZipLookupResult | None:
    """Parse a lookup response into a ZipLookupResult.

    Returns None when the response has no usable place.
    """
    places = data.get("places") or []
    if not places:
        return None

    place = places[0]
    try:
        return ZipLookupResult(
            postal_code=postal_code,
            city=place.get("place name", ""),
            region=place.get("state abbreviation") or place.get("state", ""),
            latitude=float(place["latitude"]),
            longitude=float(place["longitude"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


class ZipLookupClient:
    """Client for resolving postal codes to coordinates.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = ZIP_LOOKUP_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize ZIP lookup client.

        Args:
            base_url: Lookup API base URL
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def resolve(self, postal_code: str) -> ZipLookupResult:
        """Resolve a postal code.

        This method performs HTTP I/O. ZIP+4 codes are looked up by their
        5-digit base.

        Args:
            postal_code: ZIP or ZIP+4 code

        Returns:
            ZipLookupResult for the code

        Raises:
            ValidationError: If the code is malformed
            NotFound: If the code is unknown
            ServiceUnavailable: If the lookup service cannot be reached
        """
        validate_postal_code(postal_code)
        url = f"{self.base_url}/{base_postal_code(postal_code)}"

        logger.info("Looking up ZIP code %s", postal_code)

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error("ZIP lookup timed out for %s", postal_code)
            raise ServiceUnavailable("ZIP lookup timed out") from e
        except requests.RequestException as e:
            logger.error("ZIP lookup failed: %s", str(e))
            raise ServiceUnavailable(f"ZIP lookup failed: {e}") from e

        if response.status_code == 404:
            raise NotFound(f"ZIP code {postal_code} not found")

        if response.status_code != 200:
            logger.warning(
                "ZIP lookup returned non-200: %d - %s",
                response.status_code,
                response.text,
            )
            raise ServiceUnavailable(f"ZIP lookup returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceUnavailable("ZIP lookup returned invalid JSON") from e

        result = parse_lookup_response(postal_code, data)
        if result is None:
            raise NotFound(f"ZIP code {postal_code} not found")

        logger.info("Resolved ZIP %s to %s, %s", postal_code, result.city, result.region)
        return result
