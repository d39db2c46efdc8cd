"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, BoundingBox


STORAGE_BACKENDS = ("memory", "firestore")
CHANNEL_TYPES = ("webhook", "whatsapp", "log")


@dataclass(frozen=True)
class DeliveryChannel:
    """Where alerts are delivered.

    Attributes:
        channel_type: 'webhook', 'whatsapp' or 'log'
        webhook_url: Endpoint for webhook delivery
        credentials: Channel credentials as (key, value) pairs
        recipients: WhatsApp numbers keyed by user ID, as (user_id, number) pairs
    """
    channel_type: str = "log"
    webhook_url: str = ""
    credentials: tuple[tuple[str, str], ...] | None = None
    recipients: tuple[tuple[str, str], ...] = ()


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        notify_radius_miles: Users within this distance of a strike are notified
        lookback_hours: Default window for nearby-strike queries
        delivery_concurrency: Maximum parallel delivery attempts per pass
        delivery_timeout_seconds: Bound on each external delivery call
        storage_backend: 'memory' or 'firestore'
        firestore_project: GCP project for Firestore (None for default)
        firestore_database: Firestore database name (None for default)
        collection_prefix: Prefix for Firestore collection names
        zip_lookup_url: Base URL of the postal code lookup service
        strike_bounds: Strikes outside this box are rejected
        delivery: Delivery channel configuration
    """
    notify_radius_miles: float = 20.0
    lookback_hours: int = 24
    delivery_concurrency: int = 4
    delivery_timeout_seconds: float = 10.0
    storage_backend: str = "memory"
    firestore_project: str | None = None
    firestore_database: str | None = None
    collection_prefix: str = ""
    zip_lookup_url: str = "https://api.zippopotam.us/us"
    strike_bounds: BoundingBox = CONTINENTAL_US_BOUNDS
    delivery: DeliveryChannel = field(default_factory=DeliveryChannel)


@dataclass
class ConfigIssue:
    """A configuration validation problem.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ConfigIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[ConfigIssue]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ConfigIssue]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ConfigIssue]:
    """Validate a bounding box.

    Pure function.

    Args:
        bounds: Bounding box to validate
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    for lat in (bounds.min_latitude, bounds.max_latitude):
        if not -90 <= lat <= 90:
            errors.append(ConfigIssue(
                field=field_name,
                message=f"Latitude {lat} out of range [-90, 90]",
            ))

    for lon in (bounds.min_longitude, bounds.max_longitude):
        if not -180 <= lon <= 180:
            errors.append(ConfigIssue(
                field=field_name,
                message=f"Longitude {lon} out of range [-180, 180]",
            ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ConfigIssue(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ConfigIssue(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def validate_delivery(channel: DeliveryChannel) -> list[ConfigIssue]:
    """Validate the delivery channel.

    Pure function.
    """
    errors = []

    if channel.channel_type not in CHANNEL_TYPES:
        errors.append(ConfigIssue(
            field="delivery.type",
            message=f"Unknown channel type '{channel.channel_type}' (expected one of {', '.join(CHANNEL_TYPES)})",
        ))
        return errors

    if channel.channel_type == "webhook":
        if not channel.webhook_url:
            errors.append(ConfigIssue(
                field="delivery.webhook_url",
                message="Webhook channel requires webhook_url",
            ))
        elif channel.webhook_url.startswith("${"):
            errors.append(ConfigIssue(
                field="delivery.webhook_url",
                message="Webhook URL not resolved (still contains placeholder)",
                severity="warning",
            ))

    if channel.channel_type == "whatsapp":
        creds = dict(channel.credentials or ())
        for key in ("account_sid", "auth_token", "from_number"):
            if not creds.get(key):
                errors.append(ConfigIssue(
                    field=f"delivery.credentials.{key}",
                    message=f"WhatsApp channel missing credential '{key}'",
                ))
        if not channel.recipients:
            errors.append(ConfigIssue(
                field="delivery.recipients",
                message="WhatsApp channel has no recipients; every delivery will fail",
                severity="warning",
            ))

    if channel.channel_type == "log":
        errors.append(ConfigIssue(
            field="delivery.type",
            message="Log channel only writes alerts to the log",
            severity="warning",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ConfigIssue] = []

    if config.notify_radius_miles <= 0:
        errors.append(ConfigIssue(
            field="notify_radius_miles",
            message=f"Notify radius must be positive, got {config.notify_radius_miles}",
        ))

    if config.lookback_hours <= 0:
        errors.append(ConfigIssue(
            field="lookback_hours",
            message=f"Lookback must be positive, got {config.lookback_hours}",
        ))

    if config.delivery_concurrency < 1:
        errors.append(ConfigIssue(
            field="delivery_concurrency",
            message=f"Delivery concurrency must be at least 1, got {config.delivery_concurrency}",
        ))

    if config.delivery_timeout_seconds <= 0:
        errors.append(ConfigIssue(
            field="delivery_timeout_seconds",
            message=f"Delivery timeout must be positive, got {config.delivery_timeout_seconds}",
        ))

    if config.storage_backend not in STORAGE_BACKENDS:
        errors.append(ConfigIssue(
            field="storage_backend",
            message=f"Unknown storage backend '{config.storage_backend}'",
        ))
    elif config.storage_backend == "memory":
        errors.append(ConfigIssue(
            field="storage_backend",
            message="In-memory storage does not survive restarts",
            severity="warning",
        ))

    errors.extend(validate_bounds(config.strike_bounds, "strike_bounds"))
    errors.extend(validate_delivery(config.delivery))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
