"""Message formatting - Pure functions.

This module renders lightning alerts into delivery messages.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import timezone
from typing import Any

from strike_alerts.core.location import Location
from strike_alerts.core.notification import Notification
from strike_alerts.core.strike import LightningStrike


@dataclass(frozen=True)
class RenderedMessage:
    """A message ready to hand to a delivery capability.

    Attributes:
        subject: Short subject line
        body: Plain-text body
        payload: Structured form for webhook-style channels
    """
    subject: str
    body: str
    payload: dict[str, Any]


def format_strike_time(strike: LightningStrike) -> str:
    """Format a strike's time in UTC.

    Pure function.
    """
    return strike.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_place(location: Location) -> str:
    """Format a location as 'City, Region (ZIP)'.

    Pure function.
    """
    return f"{location.city}, {location.region} ({location.postal_code})"


def format_subject(notification: Notification) -> str:
    """Format the subject line for an alert.

    Pure function.
    """
    return f"Lightning strike {notification.distance_miles:.1f} miles from you"


def format_alert_body(
    notification: Notification,
    strike: LightningStrike,
    location: Location,
) -> str:
    """Format the plain-text alert body.

    Pure function.

    Args:
        notification: Notification being delivered
        strike: The strike it refers to
        location: The user's location, for address context

    Returns:
        Multi-line message text
    """
    distance = f"{notification.distance_miles:.1f}"
    lines = [
        "Lightning Strike Alert!",
        "",
        f"A lightning strike was detected {distance} miles from your "
        f"location in {format_place(location)}.",
        "",
        "Strike Details:",
        f"- Time: {format_strike_time(strike)}",
        f"- Location: {strike.latitude:.4f}, {strike.longitude:.4f}",
        f"- Intensity: {strike.intensity:g}",
        f"- Distance from you: {distance} miles",
        "",
        "Stay safe!",
    ]
    return "\n".join(lines)


def format_webhook_payload(
    notification: Notification,
    strike: LightningStrike,
    location: Location,
    body: str,
) -> dict[str, Any]:
    """Format a structured alert payload for webhook delivery.

    Pure function.
    """
    return {
        "notification_id": notification.id,
        "user_id": notification.user_id,
        "text": body,
        "strike": {
            "id": strike.id,
            "time": strike.timestamp.isoformat(),
            "latitude": strike.latitude,
            "longitude": strike.longitude,
            "intensity": strike.intensity,
        },
        "distance_miles": round(notification.distance_miles, 2),
        "location": {
            "postal_code": location.postal_code,
            "city": location.city,
            "region": location.region,
        },
    }


def render_alert(
    notification: Notification,
    strike: LightningStrike,
    location: Location,
) -> RenderedMessage:
    """Render a complete alert for delivery.

    Pure function.
    """
    body = format_alert_body(notification, strike, location)
    return RenderedMessage(
        subject=format_subject(notification),
        body=body,
        payload=format_webhook_payload(notification, strike, location, body),
    )
