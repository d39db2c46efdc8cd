"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core, the storage backend and the external clients:

    strike report -> validate + persist -> ProximityMatcher
        -> NotificationLedger (pending notifications)
        -> DeliveryWorker (delivery attempts, Sent transitions)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from strike_alerts.core.config import Config
from strike_alerts.core.errors import ValidationError
from strike_alerts.core.location import Location, LocationUpdate, validate_postal_code
from strike_alerts.core.notification import Notification
from strike_alerts.core.proximity import StrikeWithDistance, find_nearby_strikes
from strike_alerts.core.strike import LightningStrike, StrikeReport, new_strike
from strike_alerts.delivery_worker import DeliveryPassResult, DeliveryWorker
from strike_alerts.ledger import NotificationLedger
from strike_alerts.location_store import LocationStore, new_id, utc_now
from strike_alerts.matcher import ProximityMatcher
from strike_alerts.shell.delivery import LogDeliveryClient
from strike_alerts.shell.memory_store import InMemoryStore
from strike_alerts.shell.zip_lookup_client import ZipLookupClient, ZipLookupResult


logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Result of ingesting one strike report.

    Attributes:
        strike: The persisted strike
        notifications: Notifications recorded for nearby users
    """
    strike: LightningStrike
    notifications: list[Notification]


def create_store(config: Config) -> Any:
    """Create the storage backend named in the configuration."""
    if config.storage_backend == "firestore":
        from strike_alerts.shell.firestore_store import FirestoreConfig, FirestoreStore

        return FirestoreStore(FirestoreConfig(
            project_id=config.firestore_project,
            database=config.firestore_database,
            collection_prefix=config.collection_prefix,
        ))

    return InMemoryStore()


def create_delivery_client(config: Config) -> Any:
    """Create the delivery client named in the configuration."""
    channel = config.delivery

    if channel.channel_type == "webhook":
        from strike_alerts.shell.webhook_client import WebhookDeliveryClient

        return WebhookDeliveryClient(channel.webhook_url, timeout=config.delivery_timeout_seconds)

    if channel.channel_type == "whatsapp":
        from strike_alerts.shell.whatsapp_client import WhatsAppCredentials, WhatsAppDeliveryClient

        creds = dict(channel.credentials or ())
        return WhatsAppDeliveryClient(
            WhatsAppCredentials(
                account_sid=creds.get("account_sid", ""),
                auth_token=creds.get("auth_token", ""),
                from_number=creds.get("from_number", ""),
            ),
            recipients=dict(channel.recipients),
            timeout=config.delivery_timeout_seconds,
        )

    return LogDeliveryClient()


class Orchestrator:
    """Coordinates location tracking, strike ingestion and alert delivery.

    This class wires together:
    - Storage backend (locations, strikes, notifications)
    - LocationStore, ProximityMatcher, NotificationLedger, DeliveryWorker
    - ZIP lookup client (resolving postal codes)
    - Delivery client (sending alerts)
    """

    def __init__(
        self,
        config: Config,
        store: Any | None = None,
        zip_client: ZipLookupClient | None = None,
        delivery_client: Any | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            store: Storage backend (created from config if not provided)
            zip_client: ZIP lookup client (created if not provided)
            delivery_client: Delivery client (created from config if not provided)
            clock: Source of the current time
            id_factory: Source of new record IDs
        """
        self.config = config
        self.clock = clock
        self.id_factory = id_factory
        self.store = store if store is not None else create_store(config)
        self.zip_client = zip_client or ZipLookupClient(
            base_url=config.zip_lookup_url,
            timeout=config.delivery_timeout_seconds,
        )
        self.delivery_client = delivery_client or create_delivery_client(config)

        self.locations = LocationStore(self.store, clock=clock, id_factory=id_factory)
        self.matcher = ProximityMatcher(self.locations)
        self.ledger = NotificationLedger(
            self.store,
            self.matcher,
            clock=clock,
            strike_bounds=config.strike_bounds,
        )
        self.worker = DeliveryWorker(
            self.ledger,
            strikes=self.store,
            locations=self.locations,
            delivery_client=self.delivery_client,
            max_concurrency=config.delivery_concurrency,
            timeout_seconds=config.delivery_timeout_seconds,
            clock=clock,
        )

    # ----- Locations -----

    def lookup_postal_code(self, postal_code: str) -> ZipLookupResult:
        """Resolve a postal code via the lookup service.

        Raises:
            ValidationError: If the code is malformed
            NotFound: If the code is unknown
            ServiceUnavailable: If the service cannot be reached
        """
        return self.zip_client.resolve(postal_code)

    def register_location(
        self,
        user_id: str,
        postal_code: str,
        latitude: float | None = None,
        longitude: float | None = None,
        city: str | None = None,
        region: str | None = None,
    ) -> Location:
        """Set a user's active location, resolving the postal code if needed.

        Coordinates are looked up when both are missing; supplied city and
        region take precedence over the looked-up ones.

        Raises:
            ValidationError: On malformed postal code or coordinates
            NotFound: If the postal code cannot be resolved
        """
        validate_postal_code(postal_code)

        if (latitude is None) != (longitude is None):
            raise ValidationError("latitude and longitude must be given together")

        if latitude is None:
            resolved = self.lookup_postal_code(postal_code)
            latitude, longitude = resolved.latitude, resolved.longitude
            city = city or resolved.city
            region = region or resolved.region

        return self.locations.set_active_location(
            user_id=user_id,
            postal_code=postal_code,
            latitude=latitude,
            longitude=longitude,
            city=city or "",
            region=region or "",
        )

    def get_location(self, user_id: str) -> Location | None:
        """Return a user's active location."""
        return self.locations.get_active_location(user_id)

    def update_location(self, location_id: str, update: LocationUpdate) -> Location:
        """Apply a partial update to a location."""
        return self.locations.update_location(location_id, update)

    def deactivate_location(self, user_id: str) -> Location | None:
        """Deactivate a user's active location."""
        return self.locations.deactivate_location(user_id)

    # ----- Strikes -----

    def ingest_strike(self, report: StrikeReport) -> IngestResult:
        """Persist a strike and record notifications for nearby users.

        This is the main ingestion entry point that:
        1. Validates the report (bounds, intensity)
        2. Persists the strike
        3. Runs one proximity-matching pass with the configured radius

        Raises:
            ValidationError: If the report is invalid or out of bounds
        """
        strike = new_strike(
            strike_id=self.id_factory(),
            report=report,
            now=self.clock(),
            bounds=self.config.strike_bounds,
        )
        self.store.save_strike(strike)

        logger.info(
            "Ingested strike %s at (%.4f, %.4f), intensity %g",
            strike.id,
            strike.latitude,
            strike.longitude,
            strike.intensity,
        )

        notifications = self.ledger.record_matches(
            strike.id,
            strike.latitude,
            strike.longitude,
            self.config.notify_radius_miles,
        )

        return IngestResult(strike=strike, notifications=notifications)

    def nearby_strikes(
        self,
        user_id: str,
        radius_miles: float | None = None,
        hours_back: float | None = None,
    ) -> list[StrikeWithDistance]:
        """Strikes near a user's active location in a recent window, newest first.

        Returns an empty list if the user has no active location.

        Raises:
            ValidationError: If the radius is negative
        """
        location = self.locations.get_active_location(user_id)
        if location is None:
            return []

        radius = self.config.notify_radius_miles if radius_miles is None else radius_miles
        hours = self.config.lookback_hours if hours_back is None else hours_back
        since = self.clock() - timedelta(hours=hours)

        strikes = self.store.list_strikes_since(since)
        return find_nearby_strikes(strikes, location, radius, since=since)

    # ----- Notifications -----

    def notifications_for_user(self, user_id: str) -> list[Notification]:
        """Return a user's notifications, newest first."""
        return self.ledger.list_for_user(user_id)

    def run_delivery_pass(self) -> DeliveryPassResult:
        """Deliver all pending notifications once."""
        return self.worker.run_delivery_pass()
