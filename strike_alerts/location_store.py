"""Location Store - owns the one-active-location-per-user invariant.

Validation and record building are pure core functions; the storage
backend performs each swap or update as a single atomic unit of work.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from strike_alerts.core.location import (
    Location,
    LocationUpdate,
    apply_update,
    new_location,
)


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Random record ID."""
    return uuid.uuid4().hex


class LocationStore:
    """Stores user locations and keeps at most one active per user."""

    def __init__(
        self,
        backend: Any,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        """Initialize location store.

        Args:
            backend: Storage backend (InMemoryStore or FirestoreStore)
            clock: Source of the current time
            id_factory: Source of new location IDs
        """
        self.backend = backend
        self.clock = clock
        self.id_factory = id_factory

    def set_active_location(
        self,
        user_id: str,
        postal_code: str,
        latitude: float,
        longitude: float,
        city: str,
        region: str,
    ) -> Location:
        """Make a new location the user's only active one.

        Prior active locations are deactivated in the same unit of work.

        Raises:
            ValidationError: On malformed postal code or out-of-range coordinates
        """
        location = new_location(
            location_id=self.id_factory(),
            user_id=user_id,
            postal_code=postal_code,
            latitude=latitude,
            longitude=longitude,
            city=city,
            region=region,
            now=self.clock(),
        )

        stored = self.backend.replace_active_location(location)
        logger.info("User %s now located at %s (%s)", user_id, postal_code, stored.id)
        return stored

    def get_active_location(self, user_id: str) -> Location | None:
        """Return the user's active location, or None if they never set one."""
        return self.backend.get_active_location(user_id)

    def update_location(self, location_id: str, update: LocationUpdate) -> Location:
        """Change only the supplied fields of a location.

        Raises:
            NotFound: If the location does not exist
            ValidationError: If a supplied field is invalid
        """
        now = self.clock()
        updated = self.backend.modify_location(
            location_id,
            lambda current: apply_update(current, update, now),
        )
        logger.info("Updated location %s", location_id)
        return updated

    def deactivate_location(self, user_id: str) -> Location | None:
        """Deactivate the user's active location, returning it if there was one."""
        deactivated = self.backend.deactivate_active_location(user_id, self.clock())
        if deactivated is not None:
            logger.info("Deactivated location %s for %s", deactivated.id, user_id)
        return deactivated

    def latest_location(self, user_id: str) -> Location | None:
        """Return the user's active location, or the most recent inactive one."""
        return self.backend.latest_location(user_id)

    def list_active_locations(self) -> list[Location]:
        """Return every active location."""
        return self.backend.list_active_locations()
