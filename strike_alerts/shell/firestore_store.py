"""Firestore storage backend - Imperative Shell.

This module persists locations, strikes and notifications in Google Cloud
Firestore. It exposes the same methods as InMemoryStore.

Consistency:
- Swapping a user's active location runs in one Firestore transaction.
- Notification documents use a deterministic ID per (user, strike) and
  are written with create(), so a duplicate insert fails with
  AlreadyExists and is treated as "already recorded".
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore
from google.cloud.firestore import FieldFilter

from strike_alerts.core.errors import NotFound
from strike_alerts.core.location import Location, pick_latest
from strike_alerts.core.notification import (
    DeliveryStatus,
    Notification,
    filter_pending,
    mark_sent,
    sort_newest_first,
)
from strike_alerts.core.strike import LightningStrike


logger = logging.getLogger(__name__)


LOCATIONS_COLLECTION = "user_locations"
STRIKES_COLLECTION = "lightning_strikes"
NOTIFICATIONS_COLLECTION = "notifications"


@dataclass
class FirestoreConfig:
    """Configuration for the Firestore store.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection_prefix: Prefix added to every collection name
    """
    project_id: str | None = None
    database: str | None = None
    collection_prefix: str = ""


def location_to_dict(location: Location) -> dict[str, Any]:
    """Serialize a Location to a Firestore document."""
    return {
        "user_id": location.user_id,
        "postal_code": location.postal_code,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "city": location.city,
        "region": location.region,
        "is_active": location.is_active,
        "created_at": location.created_at,
        "updated_at": location.updated_at,
    }


def location_from_dict(doc_id: str, data: dict[str, Any]) -> Location:
    """Deserialize a Firestore document into a Location."""
    return Location(
        id=doc_id,
        user_id=data["user_id"],
        postal_code=data["postal_code"],
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        city=data.get("city", ""),
        region=data.get("region", ""),
        is_active=bool(data.get("is_active", False)),
        created_at=data["created_at"],
        updated_at=data.get("updated_at", data["created_at"]),
    )


def strike_to_dict(strike: LightningStrike) -> dict[str, Any]:
    """Serialize a LightningStrike to a Firestore document."""
    return {
        "latitude": strike.latitude,
        "longitude": strike.longitude,
        "timestamp": strike.timestamp,
        "intensity": strike.intensity,
        "created_at": strike.created_at,
    }


def strike_from_dict(doc_id: str, data: dict[str, Any]) -> LightningStrike:
    """Deserialize a Firestore document into a LightningStrike."""
    return LightningStrike(
        id=doc_id,
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        timestamp=data["timestamp"],
        intensity=float(data["intensity"]),
        created_at=data["created_at"],
    )


def notification_to_dict(notification: Notification) -> dict[str, Any]:
    """Serialize a Notification to a Firestore document."""
    return {
        "user_id": notification.user_id,
        "strike_id": notification.strike_id,
        "distance_miles": notification.distance_miles,
        "status": notification.status.value,
        "sent_at": notification.sent_at,
        "created_at": notification.created_at,
    }


def notification_from_dict(doc_id: str, data: dict[str, Any]) -> Notification:
    """Deserialize a Firestore document into a Notification."""
    return Notification(
        id=doc_id,
        user_id=data["user_id"],
        strike_id=data["strike_id"],
        distance_miles=float(data["distance_miles"]),
        status=DeliveryStatus(data.get("status", DeliveryStatus.PENDING.value)),
        sent_at=data.get("sent_at"),
        created_at=data["created_at"],
    )


class FirestoreStore:
    """Firestore-backed store for locations, strikes and notifications.

    This is part of the imperative shell - it handles database I/O.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore store.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _collection(self, name: str) -> Any:
        return self.client.collection(f"{self.config.collection_prefix}{name}")

    def _locations(self) -> Any:
        return self._collection(LOCATIONS_COLLECTION)

    def _strikes(self) -> Any:
        return self._collection(STRIKES_COLLECTION)

    def _notifications(self) -> Any:
        return self._collection(NOTIFICATIONS_COLLECTION)

    def _active_query(self, user_id: str) -> Any:
        return (
            self._locations()
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("is_active", "==", True))
        )

    # ----- Locations -----

    def replace_active_location(self, location: Location) -> Location:
        """Deactivate the user's active locations and insert a new one in one transaction."""
        new_ref = self._locations().document(location.id)
        query = self._active_query(location.user_id)

        @firestore.transactional
        def _replace(transaction: Any) -> int:
            # All reads must happen before any write in a Firestore transaction
            previous = list(transaction.get(query))
            for snapshot in previous:
                transaction.update(snapshot.reference, {
                    "is_active": False,
                    "updated_at": location.created_at,
                })
            transaction.create(new_ref, location_to_dict(location))
            return len(previous)

        deactivated = _replace(self.client.transaction())
        logger.info(
            "Set active location for %s (%d previous deactivated)",
            location.user_id,
            deactivated,
        )
        return location

    def get_active_location(self, user_id: str) -> Location | None:
        """Return the user's active location, if any."""
        for snapshot in self._active_query(user_id).limit(1).stream():
            return location_from_dict(snapshot.id, snapshot.to_dict())
        return None

    def get_location(self, location_id: str) -> Location | None:
        """Return a location by ID, if it exists."""
        snapshot = self._locations().document(location_id).get()
        if not snapshot.exists:
            return None
        return location_from_dict(snapshot.id, snapshot.to_dict())

    def modify_location(
        self,
        location_id: str,
        change: Callable[[Location], Location],
    ) -> Location:
        """Read-modify-write a location in one transaction.

        Raises:
            NotFound: If the location does not exist
        """
        ref = self._locations().document(location_id)

        @firestore.transactional
        def _modify(transaction: Any) -> Location:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFound(f"Location {location_id} not found")

            current = location_from_dict(snapshot.id, snapshot.to_dict())
            updated = change(current)

            others = []
            if updated.is_active and not current.is_active:
                others = [
                    s for s in transaction.get(self._active_query(updated.user_id))
                    if s.id != location_id
                ]

            for other in others:
                transaction.update(other.reference, {
                    "is_active": False,
                    "updated_at": updated.updated_at,
                })
            transaction.set(ref, location_to_dict(updated))
            return updated

        return _modify(self.client.transaction())

    def deactivate_active_location(self, user_id: str, now: datetime) -> Location | None:
        """Deactivate the user's active location, returning it if there was one."""
        query = self._active_query(user_id)

        @firestore.transactional
        def _deactivate(transaction: Any) -> Location | None:
            snapshots = list(transaction.get(query))
            for snapshot in snapshots:
                transaction.update(snapshot.reference, {"is_active": False, "updated_at": now})
            if not snapshots:
                return None
            data = {**snapshots[0].to_dict(), "is_active": False, "updated_at": now}
            return location_from_dict(snapshots[0].id, data)

        return _deactivate(self.client.transaction())

    def latest_location(self, user_id: str) -> Location | None:
        """Return the user's active location, or their most recent one."""
        query = self._locations().where(filter=FieldFilter("user_id", "==", user_id))
        locations = [location_from_dict(s.id, s.to_dict()) for s in query.stream()]
        return pick_latest(locations)

    def list_active_locations(self) -> list[Location]:
        """Return every active location."""
        query = self._locations().where(filter=FieldFilter("is_active", "==", True))
        return [location_from_dict(s.id, s.to_dict()) for s in query.stream()]

    # ----- Strikes -----

    def save_strike(self, strike: LightningStrike) -> LightningStrike:
        """Persist a strike."""
        self._strikes().document(strike.id).set(strike_to_dict(strike))
        return strike

    def get_strike(self, strike_id: str) -> LightningStrike | None:
        """Return a strike by ID, if it exists."""
        snapshot = self._strikes().document(strike_id).get()
        if not snapshot.exists:
            return None
        return strike_from_dict(snapshot.id, snapshot.to_dict())

    def list_strikes_since(self, since: datetime | None) -> list[LightningStrike]:
        """Return strikes that occurred at or after a given time."""
        query = self._strikes()
        if since is not None:
            query = query.where(filter=FieldFilter("timestamp", ">=", since))
        return [strike_from_dict(s.id, s.to_dict()) for s in query.stream()]

    # ----- Notifications -----

    def insert_notification(self, notification: Notification) -> tuple[Notification, bool]:
        """Create a notification unless one exists for the same (user, strike).

        Returns:
            (stored notification, True if it was created by this call)
        """
        ref = self._notifications().document(notification.id)
        try:
            ref.create(notification_to_dict(notification))
            return notification, True
        except AlreadyExists:
            logger.debug("Notification %s already recorded", notification.id)
            snapshot = ref.get()
            return notification_from_dict(snapshot.id, snapshot.to_dict()), False

    def get_notification(self, notification_id: str) -> Notification | None:
        """Return a notification by ID, if it exists."""
        snapshot = self._notifications().document(notification_id).get()
        if not snapshot.exists:
            return None
        return notification_from_dict(snapshot.id, snapshot.to_dict())

    def mark_notification_sent(self, notification_id: str, sent_at: datetime) -> Notification:
        """Move a notification to Sent in one transaction; already-sent ones are untouched.

        Raises:
            NotFound: If the notification does not exist
        """
        ref = self._notifications().document(notification_id)

        @firestore.transactional
        def _mark(transaction: Any) -> Notification:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFound(f"Notification {notification_id} not found")

            current = notification_from_dict(snapshot.id, snapshot.to_dict())
            updated = mark_sent(current, sent_at)
            if updated is not current:
                transaction.update(ref, {
                    "status": updated.status.value,
                    "sent_at": updated.sent_at,
                })
            return updated

        return _mark(self.client.transaction())

    def list_pending_notifications(self) -> list[Notification]:
        """Return all pending notifications, oldest first."""
        query = self._notifications().where(
            filter=FieldFilter("status", "==", DeliveryStatus.PENDING.value)
        )
        return filter_pending(notification_from_dict(s.id, s.to_dict()) for s in query.stream())

    def list_notifications_for_user(self, user_id: str) -> list[Notification]:
        """Return a user's notifications, newest first."""
        query = self._notifications().where(filter=FieldFilter("user_id", "==", user_id))
        return sort_newest_first(notification_from_dict(s.id, s.to_dict()) for s in query.stream())
