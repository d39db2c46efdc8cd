"""Lightning strike models and parsing - Pure functions.

This module validates strike reports and turns them into immutable
LightningStrike records. All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from strike_alerts.core.errors import ValidationError
from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, BoundingBox


@dataclass(frozen=True)
class StrikeReport:
    """An incoming, not yet persisted, strike report.

    Attributes:
        latitude: Strike latitude
        longitude: Strike longitude
        timestamp: When the strike occurred (UTC)
        intensity: Strike intensity (positive)
    """
    latitude: float
    longitude: float
    timestamp: datetime
    intensity: float


@dataclass(frozen=True)
class LightningStrike:
    """Immutable lightning strike record.

    Attributes:
        id: Unique strike ID
        latitude: Strike latitude
        longitude: Strike longitude
        timestamp: When the strike occurred (UTC)
        intensity: Strike intensity
        created_at: When the record was created (UTC)
    """
    id: str
    latitude: float
    longitude: float
    timestamp: datetime
    intensity: float
    created_at: datetime

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


def validate_strike_location(
    latitude: float,
    longitude: float,
    bounds: BoundingBox = CONTINENTAL_US_BOUNDS,
) -> None:
    """Reject strike coordinates outside the accepted bounding box.

    Raises:
        ValidationError: If coordinates are non-finite or out of bounds
    """
    if not (_is_finite_number(latitude) and _is_finite_number(longitude)):
        raise ValidationError(
            f"Lightning strike coordinates must be numbers, got ({latitude}, {longitude})"
        )

    if not bounds.contains(latitude, longitude):
        raise ValidationError(
            f"Lightning strike coordinates ({latitude}, {longitude}) must be within "
            f"continental US bounds: latitude [{bounds.min_latitude}, {bounds.max_latitude}], "
            f"longitude [{bounds.min_longitude}, {bounds.max_longitude}]"
        )


def validate_report(report: StrikeReport, bounds: BoundingBox = CONTINENTAL_US_BOUNDS) -> None:
    """Validate a strike report before it is persisted.

    Raises:
        ValidationError: On out-of-bounds coordinates or non-positive intensity
    """
    validate_strike_location(report.latitude, report.longitude, bounds)

    if not _is_finite_number(report.intensity) or report.intensity <= 0:
        raise ValidationError(f"Intensity must be positive, got {report.intensity}")

    if not isinstance(report.timestamp, datetime):
        raise ValidationError("Strike timestamp must be a datetime")


def new_strike(
    strike_id: str,
    report: StrikeReport,
    now: datetime,
    bounds: BoundingBox = CONTINENTAL_US_BOUNDS,
) -> LightningStrike:
    """Validate a report and build a LightningStrike.

    Pure function.
    """
    validate_report(report, bounds)

    return LightningStrike(
        id=strike_id,
        latitude=float(report.latitude),
        longitude=float(report.longitude),
        timestamp=_ensure_utc(report.timestamp),
        intensity=float(report.intensity),
        created_at=now,
    )


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string or epoch milliseconds into a UTC datetime.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return _ensure_utc(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds, same as most strike feeds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    if isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return _ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            pass

    raise ValidationError(f"Invalid timestamp: {value!r}")


def parse_report(data: dict[str, Any]) -> StrikeReport:
    """Parse a JSON strike report into a StrikeReport.

    Pure function. Bounds are checked later by validate_report.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    missing = [k for k in ("latitude", "longitude", "timestamp", "intensity") if k not in data]
    if missing:
        raise ValidationError(f"Missing strike fields: {', '.join(missing)}")

    try:
        latitude = float(data["latitude"])
        longitude = float(data["longitude"])
        intensity = float(data["intensity"])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid strike field: {e}") from e

    return StrikeReport(
        latitude=latitude,
        longitude=longitude,
        timestamp=parse_timestamp(data["timestamp"]),
        intensity=intensity,
    )


def filter_by_time(
    strikes: list[LightningStrike],
    after: datetime | None = None,
) -> list[LightningStrike]:
    """Keep strikes that occurred at or after a given time.

    Pure function.
    """
    if after is None:
        return list(strikes)
    return [s for s in strikes if s.timestamp >= after]


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
