"""Notification Ledger - owns notification records and their delivery state.

Notifications move Pending -> Sent only. Creation is idempotent per
(user, strike): the backend's compare-and-insert decides whether a record
already exists, so retries and concurrent passes for the same strike
never create duplicates.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, BoundingBox
from strike_alerts.core.notification import Notification, build_notifications
from strike_alerts.core.strike import validate_strike_location
from strike_alerts.location_store import utc_now
from strike_alerts.matcher import ProximityMatcher


logger = logging.getLogger(__name__)


class NotificationLedger:
    """Creates notifications for matched users and tracks delivery."""

    def __init__(
        self,
        backend: Any,
        matcher: ProximityMatcher,
        clock: Callable[[], datetime] = utc_now,
        strike_bounds: BoundingBox = CONTINENTAL_US_BOUNDS,
    ) -> None:
        """Initialize notification ledger.

        Args:
            backend: Storage backend (InMemoryStore or FirestoreStore)
            matcher: Proximity matcher for finding nearby users
            clock: Source of the current time
            strike_bounds: Strikes outside this box are rejected
        """
        self.backend = backend
        self.matcher = matcher
        self.clock = clock
        self.strike_bounds = strike_bounds

    def record_matches(
        self,
        strike_id: str,
        latitude: float,
        longitude: float,
        radius_miles: float,
    ) -> list[Notification]:
        """Create one pending notification per user near a strike.

        Safe to retry: users already notified for this strike keep their
        existing record, which is returned in its place.

        Returns:
            Notifications for every matched user, nearest first

        Raises:
            ValidationError: If the strike is outside the accepted bounds
        """
        validate_strike_location(latitude, longitude, self.strike_bounds)

        matches = self.matcher.find_near(latitude, longitude, radius_miles)
        candidates = build_notifications(strike_id, matches, self.clock())

        recorded = []
        created = 0
        for candidate in candidates:
            stored, was_created = self.backend.insert_notification(candidate)
            recorded.append(stored)
            if was_created:
                created += 1

        logger.info(
            "Strike %s: %d users in range, %d new notifications",
            strike_id,
            len(recorded),
            created,
        )
        return recorded

    def mark_sent(self, notification_id: str, sent_at: datetime) -> None:
        """Mark a notification as delivered.

        Already-sent notifications keep their original delivery time.

        Raises:
            NotFound: If the notification does not exist
        """
        self.backend.mark_notification_sent(notification_id, sent_at)

    def list_pending(self) -> list[Notification]:
        """Return all notifications awaiting delivery, oldest first."""
        return self.backend.list_pending_notifications()

    def list_for_user(self, user_id: str) -> list[Notification]:
        """Return a user's notifications, newest first."""
        return self.backend.list_notifications_for_user(user_id)
