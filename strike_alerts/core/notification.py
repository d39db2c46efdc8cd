"""Notification models and delivery state - Pure functions.

A notification pairs one user with one strike. Its delivery state only
moves Pending -> Sent; a failed attempt leaves it Pending for the next
pass. Persistence is handled by the shell (storage backends); this
module holds the pure logic, including the deterministic ID that makes
(user, strike) pairs unique.
"""

import hashlib
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterable

from strike_alerts.core.proximity import ProximityMatch


class DeliveryStatus(str, Enum):
    """Delivery state of a notification."""
    PENDING = "pending"
    SENT = "sent"


@dataclass(frozen=True)
class Notification:
    """Immutable notification record.

    Attributes:
        id: Deterministic ID derived from (user_id, strike_id)
        user_id: User to notify
        strike_id: Strike that triggered the notification
        distance_miles: Distance from the user's location, fixed at creation
        status: Delivery state
        sent_at: When delivery was confirmed (None while pending)
        created_at: When the record was created (UTC)
    """
    id: str
    user_id: str
    strike_id: str
    distance_miles: float
    status: DeliveryStatus
    sent_at: datetime | None
    created_at: datetime

    @property
    def is_pending(self) -> bool:
        """True while delivery has not been confirmed."""
        return self.status == DeliveryStatus.PENDING

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key: (user_id, strike_id)."""
        return (self.user_id, self.strike_id)


def notification_id(user_id: str, strike_id: str) -> str:
    """Derive a stable, storage-safe ID for a (user, strike) pair.

    Pure function.
    """
    digest = hashlib.sha256(f"{strike_id}\x00{user_id}".encode("utf-8"))
    return digest.hexdigest()[:40]


def build_notification(
    strike_id: str,
    match: ProximityMatch,
    now: datetime,
) -> Notification:
    """Build a pending notification for a proximity match.

    Pure function.
    """
    return Notification(
        id=notification_id(match.user_id, strike_id),
        user_id=match.user_id,
        strike_id=strike_id,
        distance_miles=match.distance_miles,
        status=DeliveryStatus.PENDING,
        sent_at=None,
        created_at=now,
    )


def build_notifications(
    strike_id: str,
    matches: Iterable[ProximityMatch],
    now: datetime,
) -> list[Notification]:
    """Build one pending notification per matched user.

    Pure function. A user matched more than once keeps the first (closest)
    match.
    """
    notifications = []
    seen: set[str] = set()

    for match in matches:
        if match.user_id in seen:
            continue
        seen.add(match.user_id)
        notifications.append(build_notification(strike_id, match, now))

    return notifications


def mark_sent(notification: Notification, sent_at: datetime) -> Notification:
    """Transition a notification to Sent.

    Pure function. Already-sent notifications are returned unchanged so
    that repeated confirmations keep the original delivery timestamp.
    """
    if not notification.is_pending:
        return notification

    return replace(notification, status=DeliveryStatus.SENT, sent_at=sent_at)


def filter_pending(notifications: Iterable[Notification]) -> list[Notification]:
    """Keep only pending notifications, oldest first.

    Pure function.
    """
    pending = [n for n in notifications if n.is_pending]
    return sorted(pending, key=lambda n: (n.created_at, n.id))


def sort_newest_first(notifications: Iterable[Notification]) -> list[Notification]:
    """Order notifications by creation time, newest first.

    Pure function. Ties are broken by ID for a stable order.
    """
    return sorted(notifications, key=lambda n: (n.created_at, n.id), reverse=True)
