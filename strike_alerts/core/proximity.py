"""Proximity matching - Pure functions.

Given a point and a radius, decide which locations (or strikes) are near
it. Matching is a filter over the full set followed by a deterministic
sort, so a storage layer that pre-filters must return the same result.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from strike_alerts.core.errors import ValidationError
from strike_alerts.core.geo import calculate_distance
from strike_alerts.core.location import Location
from strike_alerts.core.strike import LightningStrike


@dataclass(frozen=True)
class ProximityMatch:
    """A user whose active location is within range of a point.

    Attributes:
        user_id: Matched user
        distance_miles: Great-circle distance to the point
    """
    user_id: str
    distance_miles: float


@dataclass(frozen=True)
class StrikeWithDistance:
    """A strike paired with its distance from a user's location."""
    strike: LightningStrike
    distance_miles: float


def validate_radius(radius_miles: float) -> None:
    """Raise ValidationError unless the radius is a finite non-negative number."""
    if (
        not isinstance(radius_miles, (int, float))
        or isinstance(radius_miles, bool)
        or not math.isfinite(radius_miles)
        or radius_miles < 0
    ):
        raise ValidationError(f"Radius must be a non-negative number, got {radius_miles}")


def find_near(
    locations: Iterable[Location],
    latitude: float,
    longitude: float,
    radius_miles: float,
) -> list[ProximityMatch]:
    """Find active locations within a radius of a point.

    Pure function. The radius boundary is inclusive.

    Args:
        locations: Candidate locations (inactive ones are ignored)
        latitude: Point latitude
        longitude: Point longitude
        radius_miles: Search radius in miles

    Returns:
        Matches sorted by ascending distance, ties broken by user ID
    """
    validate_radius(radius_miles)

    matches = []
    for location in locations:
        if not location.is_active:
            continue

        distance = calculate_distance(
            latitude,
            longitude,
            location.latitude,
            location.longitude,
        )
        if distance <= radius_miles:
            matches.append(ProximityMatch(
                user_id=location.user_id,
                distance_miles=distance,
            ))

    return sorted(matches, key=lambda m: (m.distance_miles, m.user_id))


def find_nearby_strikes(
    strikes: Iterable[LightningStrike],
    location: Location,
    radius_miles: float,
    since: datetime | None = None,
) -> list[StrikeWithDistance]:
    """Find strikes near a user's location.

    Pure function.

    Args:
        strikes: Candidate strikes
        location: The user's location
        radius_miles: Search radius in miles (inclusive)
        since: Only include strikes at or after this time

    Returns:
        Strikes with distances, newest first
    """
    validate_radius(radius_miles)

    nearby = []
    for strike in strikes:
        if since is not None and strike.timestamp < since:
            continue

        distance = calculate_distance(
            location.latitude,
            location.longitude,
            strike.latitude,
            strike.longitude,
        )
        if distance <= radius_miles:
            nearby.append(StrikeWithDistance(strike=strike, distance_miles=distance))

    return sorted(nearby, key=lambda s: (s.strike.timestamp, s.strike.id), reverse=True)
