"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Great-circle distance and bounds checks
- Location and strike validation
- Proximity matching
- Notification state transitions
- Message formatting

All functions here are deterministic and have no I/O.
"""

from strike_alerts.core.errors import (
    DeliveryFailure,
    InvalidCoordinate,
    NotFound,
    ServiceUnavailable,
    ValidationError,
)
from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, calculate_distance, is_within_radius
from strike_alerts.core.location import Location, LocationUpdate, new_location, apply_update
from strike_alerts.core.strike import LightningStrike, StrikeReport, new_strike, parse_report
from strike_alerts.core.proximity import ProximityMatch, find_near, find_nearby_strikes
from strike_alerts.core.notification import DeliveryStatus, Notification, build_notifications, mark_sent
from strike_alerts.core.formatter import RenderedMessage, render_alert

__all__ = [
    # Errors
    "DeliveryFailure",
    "InvalidCoordinate",
    "NotFound",
    "ServiceUnavailable",
    "ValidationError",
    # Geo
    "CONTINENTAL_US_BOUNDS",
    "calculate_distance",
    "is_within_radius",
    # Locations
    "Location",
    "LocationUpdate",
    "new_location",
    "apply_update",
    # Strikes
    "LightningStrike",
    "StrikeReport",
    "new_strike",
    "parse_report",
    # Proximity
    "ProximityMatch",
    "find_near",
    "find_nearby_strikes",
    # Notifications
    "DeliveryStatus",
    "Notification",
    "build_notifications",
    "mark_sent",
    # Formatter
    "RenderedMessage",
    "render_alert",
]
