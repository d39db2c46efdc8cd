"""In-memory storage backend - Imperative Shell.

Keeps locations, strikes and notifications in dictionaries guarded by a
single re-entrant lock. Every compound operation (deactivate-then-insert,
compare-and-insert, read-modify-write) runs inside that lock, so no caller
can observe it half-applied.

Used for local development and tests; FirestoreStore is the durable
equivalent with the same method set.
"""

import logging
import threading
from datetime import datetime
from typing import Callable

from strike_alerts.core.errors import NotFound
from strike_alerts.core.location import Location, deactivate, pick_latest
from strike_alerts.core.notification import (
    Notification,
    filter_pending,
    mark_sent,
    sort_newest_first,
)
from strike_alerts.core.strike import LightningStrike, filter_by_time


logger = logging.getLogger(__name__)


class InMemoryStore:
    """Thread-safe in-memory store for locations, strikes and notifications."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._locations: dict[str, Location] = {}
        self._strikes: dict[str, LightningStrike] = {}
        self._notifications: dict[str, Notification] = {}
        self._notification_keys: dict[tuple[str, str], str] = {}

    # ----- Locations -----

    def _deactivate_others(self, user_id: str, keep_id: str, now: datetime) -> int:
        count = 0
        for location_id, location in list(self._locations.items()):
            if location.user_id == user_id and location.is_active and location_id != keep_id:
                self._locations[location_id] = deactivate(location, now)
                count += 1
        return count

    def replace_active_location(self, location: Location) -> Location:
        """Deactivate the user's active locations and insert a new one atomically."""
        with self._lock:
            deactivated = self._deactivate_others(location.user_id, location.id, location.created_at)
            self._locations[location.id] = location

        logger.debug(
            "Replaced active location for %s (%d deactivated)",
            location.user_id,
            deactivated,
        )
        return location

    def get_active_location(self, user_id: str) -> Location | None:
        """Return the user's active location, if any."""
        with self._lock:
            for location in self._locations.values():
                if location.user_id == user_id and location.is_active:
                    return location
        return None

    def get_location(self, location_id: str) -> Location | None:
        """Return a location by ID, if it exists."""
        with self._lock:
            return self._locations.get(location_id)

    def modify_location(
        self,
        location_id: str,
        change: Callable[[Location], Location],
    ) -> Location:
        """Read-modify-write a location atomically.

        If the change activates the location, the user's other active
        locations are deactivated in the same step.

        Raises:
            NotFound: If the location does not exist
        """
        with self._lock:
            current = self._locations.get(location_id)
            if current is None:
                raise NotFound(f"Location {location_id} not found")

            updated = change(current)
            if updated.is_active and not current.is_active:
                self._deactivate_others(updated.user_id, location_id, updated.updated_at)
            self._locations[location_id] = updated

        return updated

    def deactivate_active_location(self, user_id: str, now: datetime) -> Location | None:
        """Deactivate the user's active location, returning it if there was one."""
        with self._lock:
            active = self.get_active_location(user_id)
            if active is None:
                return None
            self._deactivate_others(user_id, "", now)
            return self._locations[active.id]

    def latest_location(self, user_id: str) -> Location | None:
        """Return the user's active location, or their most recent one."""
        with self._lock:
            locations = [loc for loc in self._locations.values() if loc.user_id == user_id]
        return pick_latest(locations)

    def list_active_locations(self) -> list[Location]:
        """Return every active location."""
        with self._lock:
            return [loc for loc in self._locations.values() if loc.is_active]

    # ----- Strikes -----

    def save_strike(self, strike: LightningStrike) -> LightningStrike:
        """Persist a strike."""
        with self._lock:
            self._strikes[strike.id] = strike
        return strike

    def get_strike(self, strike_id: str) -> LightningStrike | None:
        """Return a strike by ID, if it exists."""
        with self._lock:
            return self._strikes.get(strike_id)

    def list_strikes_since(self, since: datetime | None) -> list[LightningStrike]:
        """Return strikes that occurred at or after a given time."""
        with self._lock:
            strikes = list(self._strikes.values())
        return filter_by_time(strikes, after=since)

    # ----- Notifications -----

    def insert_notification(self, notification: Notification) -> tuple[Notification, bool]:
        """Insert a notification unless one exists for the same (user, strike).

        Returns:
            (stored notification, True if it was created by this call)
        """
        with self._lock:
            existing_id = self._notification_keys.get(notification.key)
            if existing_id is not None:
                return self._notifications[existing_id], False

            self._notifications[notification.id] = notification
            self._notification_keys[notification.key] = notification.id
            return notification, True

    def get_notification(self, notification_id: str) -> Notification | None:
        """Return a notification by ID, if it exists."""
        with self._lock:
            return self._notifications.get(notification_id)

    def mark_notification_sent(self, notification_id: str, sent_at: datetime) -> Notification:
        """Move a notification to Sent; already-sent ones are left untouched.

        Raises:
            NotFound: If the notification does not exist
        """
        with self._lock:
            current = self._notifications.get(notification_id)
            if current is None:
                raise NotFound(f"Notification {notification_id} not found")

            updated = mark_sent(current, sent_at)
            self._notifications[notification_id] = updated
            return updated

    def list_pending_notifications(self) -> list[Notification]:
        """Return all pending notifications, oldest first."""
        with self._lock:
            notifications = list(self._notifications.values())
        return filter_pending(notifications)

    def list_notifications_for_user(self, user_id: str) -> list[Notification]:
        """Return a user's notifications, newest first."""
        with self._lock:
            notifications = [n for n in self._notifications.values() if n.user_id == user_id]
        return sort_newest_first(notifications)
