"""Proximity Matcher - which users are near a point.

Reads active locations from the LocationStore and applies the pure
find_near filter, so ordering and the inclusive boundary are the same
whatever the storage backend.
"""

import logging

from strike_alerts.core.proximity import ProximityMatch, find_near
from strike_alerts.location_store import LocationStore


logger = logging.getLogger(__name__)


class ProximityMatcher:
    """Finds users whose active location is within a radius of a point."""

    def __init__(self, locations: LocationStore) -> None:
        self.locations = locations

    def find_near(
        self,
        latitude: float,
        longitude: float,
        radius_miles: float,
    ) -> list[ProximityMatch]:
        """Return (user_id, distance) matches, nearest first.

        Raises:
            InvalidCoordinate: If the point is not a valid coordinate
            ValidationError: If the radius is negative or not finite
        """
        active = self.locations.list_active_locations()
        matches = find_near(active, latitude, longitude, radius_miles)

        logger.info(
            "%d of %d active locations within %.1f miles of (%.4f, %.4f)",
            len(matches),
            len(active),
            radius_miles,
            latitude,
            longitude,
        )
        return matches
