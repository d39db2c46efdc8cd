"""Geographic calculations - Pure functions.

This module provides great-circle distance and boundary checks for
lightning strikes and user locations. All functions are pure with no
side effects.
"""

import math
from dataclasses import dataclass

from strike_alerts.core.errors import InvalidCoordinate


# Earth's radius in miles
EARTH_RADIUS_MILES = 3959.0


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check if a point is within this bounding box."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )


# Strikes are only accepted inside the contiguous United States
CONTINENTAL_US_BOUNDS = BoundingBox(
    min_latitude=24.396308,
    max_latitude=49.384358,
    min_longitude=-125.0,
    max_longitude=-66.93457,
)


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair is finite and in range.

    Pure function.
    """
    for value in (latitude, longitude):
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return False
        if not math.isfinite(value):
            return False

    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using the spherical law of cosines.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in miles

    Raises:
        InvalidCoordinate: If any input is non-finite or out of range
    """
    for lat, lon in ((lat1, lon1), (lat2, lon2)):
        if not is_valid_coordinate(lat, lon):
            raise InvalidCoordinate(f"Invalid coordinate ({lat}, {lon})")

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lon = math.radians(lon2 - lon1)

    cosine = (
        math.sin(lat1_rad) * math.sin(lat2_rad)
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lon)
    )
    # Rounding can push identical or antipodal points just past +/-1
    cosine = max(-1.0, min(1.0, cosine))

    return EARTH_RADIUS_MILES * math.acos(cosine)


def is_within_radius(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius_miles: float,
) -> bool:
    """Check if two points are within a radius of each other (inclusive).

    Pure function.
    """
    return calculate_distance(lat1, lon1, lat2, lon2) <= radius_miles


def is_within_continental_us(latitude: float, longitude: float) -> bool:
    """Check if a point falls inside the continental US bounding box.

    Pure function.
    """
    return CONTINENTAL_US_BOUNDS.contains(latitude, longitude)
