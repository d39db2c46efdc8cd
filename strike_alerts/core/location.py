"""User location models and validation - Pure functions.

A user has at most one active location at a time. Storage of locations
(and the atomic swap of the active one) is handled by the shell; this
module only builds, validates and updates immutable Location values.
"""

import math
import re
from dataclasses import dataclass, replace
from datetime import datetime

from strike_alerts.core.errors import ValidationError


# NNNNN or NNNNN-NNNN
POSTAL_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


@dataclass(frozen=True)
class Location:
    """Immutable user location.

    Attributes:
        id: Unique location ID
        user_id: Owning user identifier
        postal_code: ZIP or ZIP+4 code
        latitude: Location latitude
        longitude: Location longitude
        city: City name
        region: State or region
        is_active: Whether this is the user's current location
        created_at: When the record was created (UTC)
        updated_at: When the record was last changed (UTC)
    """
    id: str
    user_id: str
    postal_code: str
    latitude: float
    longitude: float
    city: str
    region: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class LocationUpdate:
    """Partial update for an existing location.

    Fields left as None are not changed.
    """
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    city: str | None = None
    region: str | None = None
    is_active: bool | None = None

    @property
    def is_empty(self) -> bool:
        """True if no field is supplied."""
        return all(
            value is None
            for value in (
                self.postal_code,
                self.latitude,
                self.longitude,
                self.city,
                self.region,
                self.is_active,
            )
        )


def is_valid_postal_code(postal_code: str) -> bool:
    """Check a postal code against the NNNNN[-NNNN] format.

    Pure function.
    """
    return isinstance(postal_code, str) and bool(POSTAL_CODE_PATTERN.match(postal_code))


def base_postal_code(postal_code: str) -> str:
    """Strip the +4 extension from a ZIP+4 code.

    Pure function.
    """
    return postal_code.split("-")[0]


def validate_postal_code(postal_code: str) -> None:
    """Raise ValidationError if the postal code is malformed."""
    if not is_valid_postal_code(postal_code):
        raise ValidationError(f"Invalid ZIP code format: {postal_code!r}")


def validate_latitude(latitude: float) -> None:
    """Raise ValidationError if latitude is non-finite or outside [-90, 90]."""
    if not _is_number(latitude) or not math.isfinite(latitude) or not -90 <= latitude <= 90:
        raise ValidationError(f"Latitude {latitude} out of range [-90, 90]")


def validate_longitude(longitude: float) -> None:
    """Raise ValidationError if longitude is non-finite or outside [-180, 180]."""
    if not _is_number(longitude) or not math.isfinite(longitude) or not -180 <= longitude <= 180:
        raise ValidationError(f"Longitude {longitude} out of range [-180, 180]")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def new_location(
    location_id: str,
    user_id: str,
    postal_code: str,
    latitude: float,
    longitude: float,
    city: str,
    region: str,
    now: datetime,
) -> Location:
    """Validate input and build a new active Location.

    Pure function.

    Raises:
        ValidationError: On empty user ID, malformed postal code or
            out-of-range coordinates
    """
    if not user_id or not isinstance(user_id, str):
        raise ValidationError("user_id must be a non-empty string")

    validate_postal_code(postal_code)
    validate_latitude(latitude)
    validate_longitude(longitude)

    return Location(
        id=location_id,
        user_id=user_id,
        postal_code=postal_code,
        latitude=float(latitude),
        longitude=float(longitude),
        city=city,
        region=region,
        is_active=True,
        created_at=now,
        updated_at=now,
    )


def apply_update(location: Location, update: LocationUpdate, now: datetime) -> Location:
    """Apply a partial update to a location.

    Pure function - returns a new Location with only the supplied fields
    changed and updated_at refreshed.

    Raises:
        ValidationError: If a supplied field is invalid
    """
    changes: dict[str, object] = {"updated_at": now}

    if update.postal_code is not None:
        validate_postal_code(update.postal_code)
        changes["postal_code"] = update.postal_code

    if update.latitude is not None:
        validate_latitude(update.latitude)
        changes["latitude"] = float(update.latitude)

    if update.longitude is not None:
        validate_longitude(update.longitude)
        changes["longitude"] = float(update.longitude)

    if update.city is not None:
        changes["city"] = update.city

    if update.region is not None:
        changes["region"] = update.region

    if update.is_active is not None:
        changes["is_active"] = bool(update.is_active)

    return replace(location, **changes)


def deactivate(location: Location, now: datetime) -> Location:
    """Return an inactive copy of a location.

    Pure function.
    """
    return replace(location, is_active=False, updated_at=now)


def pick_latest(locations: list[Location]) -> Location | None:
    """Pick a user's most relevant location.

    Pure function. The active location wins; otherwise the most recently
    updated one.
    """
    if not locations:
        return None

    for location in locations:
        if location.is_active:
            return location

    return max(locations, key=lambda loc: (loc.updated_at, loc.created_at))
