"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, DeliveryChannel) are defined in strike_alerts/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Optional

import yaml

from strike_alerts.core.config import Config, DeliveryChannel
from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, BoundingBox
from strike_alerts.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get or create a Secret Manager client.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT")
    if not project_id:
        # Try to get from gcloud config
        try:
            result = subprocess.run(
                ["gcloud", "config", "get-value", "project"],
                capture_output=True,
                text=True,
                timeout=2,
            )
            if result.returncode == 0 and result.stdout.strip():
                project_id = result.stdout.strip()
        except (OSError, subprocess.SubprocessError):
            logger.debug("gcloud not available; Secret Manager disabled")

    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_delivery(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> DeliveryChannel:
    """Parse the delivery channel from config data.

    Supports:
    - webhook: uses webhook_url
    - whatsapp: uses credentials (account_sid, auth_token, from_number)
                and a recipients mapping of user ID to phone number
    - log: no settings
    """
    webhook_url = ""
    if "webhook_url" in data:
        webhook_url = _resolve_value(data["webhook_url"], secret_client)

    credentials = None
    if "credentials" in data:
        credentials = tuple(
            (key, _resolve_value(value, secret_client))
            for key, value in sorted(data["credentials"].items())
        )

    recipients = tuple(
        (str(user_id), _resolve_value(str(number), secret_client))
        for user_id, number in sorted((data.get("recipients") or {}).items())
    )

    return DeliveryChannel(
        channel_type=data.get("type", "log"),
        webhook_url=webhook_url,
        credentials=credentials,
        recipients=recipients,
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()

    storage = data.get("storage", {})

    bounds = CONTINENTAL_US_BOUNDS
    if "strike_bounds" in data:
        bounds = _parse_bounds(data["strike_bounds"])

    return Config(
        notify_radius_miles=float(data.get("notify_radius_miles", 20.0)),
        lookback_hours=int(data.get("lookback_hours", 24)),
        delivery_concurrency=int(data.get("delivery_concurrency", 4)),
        delivery_timeout_seconds=float(data.get("delivery_timeout_seconds", 10.0)),
        storage_backend=storage.get("backend", "memory"),
        firestore_project=storage.get("project"),
        firestore_database=storage.get("database"),
        collection_prefix=storage.get("collection_prefix", ""),
        zip_lookup_url=data.get("zip_lookup_url", Config.zip_lookup_url),
        strike_bounds=bounds,
        delivery=_parse_delivery(data.get("delivery", {}), secret_client),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: radius %.1f miles, %s storage, %s delivery",
        config.notify_radius_miles,
        config.storage_backend,
        config.delivery.channel_type,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        NOTIFY_RADIUS_MILES: Notify users within this distance (default 20)
        LOOKBACK_HOURS: Window for nearby-strike queries (default 24)
        DELIVERY_CONCURRENCY: Parallel delivery attempts (default 4)
        DELIVERY_TIMEOUT_SECONDS: Bound on each delivery call (default 10)
        STORAGE_BACKEND: 'memory' or 'firestore' (default memory)
        FIRESTORE_DATABASE: Firestore database name
        DELIVERY_WEBHOOK_URL: Webhook for alerts (or use Secret Manager)
        DELIVERY_WEBHOOK_SECRET: Secret name holding the webhook URL
        ZIP_LOOKUP_URL: Postal code lookup base URL

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_manager_client()

    webhook_url = None
    secret_name = os.environ.get("DELIVERY_WEBHOOK_SECRET", "alert-webhook-url")
    if secret_client:
        webhook_url = secret_client.get_secret_or_env(secret_name, "DELIVERY_WEBHOOK_URL")
    else:
        webhook_url = os.environ.get("DELIVERY_WEBHOOK_URL")

    if webhook_url:
        delivery = DeliveryChannel(channel_type="webhook", webhook_url=webhook_url)
    else:
        logger.warning("DELIVERY_WEBHOOK_URL not set; alerts will only be logged")
        delivery = DeliveryChannel(channel_type="log")

    return Config(
        notify_radius_miles=float(os.environ.get("NOTIFY_RADIUS_MILES", "20")),
        lookback_hours=int(os.environ.get("LOOKBACK_HOURS", "24")),
        delivery_concurrency=int(os.environ.get("DELIVERY_CONCURRENCY", "4")),
        delivery_timeout_seconds=float(os.environ.get("DELIVERY_TIMEOUT_SECONDS", "10")),
        storage_backend=os.environ.get("STORAGE_BACKEND", "memory"),
        firestore_project=os.environ.get("GCP_PROJECT"),
        firestore_database=os.environ.get("FIRESTORE_DATABASE"),
        zip_lookup_url=os.environ.get("ZIP_LOOKUP_URL", Config.zip_lookup_url),
        delivery=delivery,
    )
