"""Tests for the Configuration Loader module.

Tests configuration loading from YAML files and environment variables.
"""

import os
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

from strike_alerts.core.config import Config
from strike_alerts.core.geo import CONTINENTAL_US_BOUNDS, BoundingBox
from strike_alerts.shell.config_loader import (
    _parse_bounds,
    _parse_delivery,
    _resolve_value,
    load_config,
    load_config_from_dict,
    load_config_from_env,
)


NO_SECRETS = "strike_alerts.shell.config_loader._get_secret_manager_client"


class TestResolveValue:
    """Tests for _resolve_value function."""

    def test_returns_non_string_unchanged(self):
        """Non-string values pass through."""
        assert _resolve_value(42) == 42
        assert _resolve_value(None) is None

    def test_returns_plain_string_unchanged(self):
        """Plain strings pass through."""
        assert _resolve_value("https://example.com") == "https://example.com"

    def test_resolves_env_var_placeholder(self):
        """${VAR} is replaced with the environment value."""
        with patch.dict(os.environ, {"ALERT_HOOK": "https://hook.example.com"}):
            assert _resolve_value("${ALERT_HOOK}") == "https://hook.example.com"

    def test_returns_placeholder_if_env_var_not_set(self):
        """Unset variables leave the placeholder in place."""
        with patch.dict(os.environ, {}, clear=True):
            assert _resolve_value("${MISSING_VAR}") == "${MISSING_VAR}"

    def test_uses_secret_client_when_provided(self):
        """A secret client resolves the value when available."""
        mock_client = Mock()
        mock_client.resolve.return_value = "resolved"

        assert _resolve_value("${secret:hook}", mock_client) == "resolved"
        mock_client.resolve.assert_called_once_with("${secret:hook}")

    def test_ignores_secret_placeholder_without_client(self):
        """Secret placeholders stay as-is without a secret client."""
        assert _resolve_value("${secret:hook}") == "${secret:hook}"


class TestParseBounds:
    """Tests for _parse_bounds function."""

    def test_converts_string_values_to_float(self):
        """String bounds are converted to floats."""
        bounds = _parse_bounds({
            "min_latitude": "30",
            "max_latitude": "45",
            "min_longitude": "-100",
            "max_longitude": "-80",
        })
        assert bounds == BoundingBox(30.0, 45.0, -100.0, -80.0)


class TestParseDelivery:
    """Tests for _parse_delivery function."""

    def test_defaults_to_log(self):
        """An empty block gives the log channel."""
        channel = _parse_delivery({})
        assert channel.channel_type == "log"
        assert channel.credentials is None
        assert channel.recipients == ()

    def test_parses_webhook(self):
        """Webhook URL is read."""
        channel = _parse_delivery({"type": "webhook", "webhook_url": "https://hook"})
        assert channel.channel_type == "webhook"
        assert channel.webhook_url == "https://hook"

    def test_parses_whatsapp(self):
        """Credentials and recipients become sorted pairs."""
        channel = _parse_delivery({
            "type": "whatsapp",
            "credentials": {
                "auth_token": "token",
                "account_sid": "AC123",
                "from_number": "+14155238886",
            },
            "recipients": {"user-2": "+15550000002", "user-1": 15550000001},
        })

        assert dict(channel.credentials)["account_sid"] == "AC123"
        assert channel.recipients == (
            ("user-1", "15550000001"),
            ("user-2", "+15550000002"),
        )

    def test_resolves_credential_secrets(self):
        """Credential placeholders go through the secret client."""
        mock_client = Mock()
        mock_client.resolve.side_effect = lambda v: v.replace("${secret:token}", "s3cret")

        channel = _parse_delivery(
            {"type": "whatsapp", "credentials": {"auth_token": "${secret:token}"}},
            mock_client,
        )

        assert dict(channel.credentials)["auth_token"] == "s3cret"


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict function."""

    def test_loads_minimal_config(self):
        """Empty dict gives defaults."""
        with patch(NO_SECRETS, return_value=None):
            config = load_config_from_dict({})

        assert config.notify_radius_miles == 20.0
        assert config.lookback_hours == 24
        assert config.storage_backend == "memory"
        assert config.strike_bounds == CONTINENTAL_US_BOUNDS

    def test_loads_full_config(self):
        """All sections are parsed."""
        data = {
            "notify_radius_miles": 15,
            "lookback_hours": 6,
            "delivery_concurrency": 8,
            "delivery_timeout_seconds": 5,
            "zip_lookup_url": "https://zip.example.com/us",
            "storage": {
                "backend": "firestore",
                "project": "my-project",
                "database": "alerts",
                "collection_prefix": "test_",
            },
            "strike_bounds": {
                "min_latitude": 30,
                "max_latitude": 45,
                "min_longitude": -100,
                "max_longitude": -80,
            },
            "delivery": {"type": "webhook", "webhook_url": "https://hook"},
        }

        with patch(NO_SECRETS, return_value=None):
            config = load_config_from_dict(data)

        assert config.notify_radius_miles == 15.0
        assert config.lookback_hours == 6
        assert config.delivery_concurrency == 8
        assert config.delivery_timeout_seconds == 5.0
        assert config.storage_backend == "firestore"
        assert config.firestore_project == "my-project"
        assert config.firestore_database == "alerts"
        assert config.collection_prefix == "test_"
        assert config.zip_lookup_url == "https://zip.example.com/us"
        assert config.strike_bounds.max_latitude == 45.0
        assert config.delivery.webhook_url == "https://hook"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_from_yaml_file(self):
        """YAML file is parsed into Config."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text(
                "notify_radius_miles: 12.5\n"
                "storage:\n"
                "  backend: memory\n"
                "delivery:\n"
                "  type: log\n"
            )

            with patch(NO_SECRETS, return_value=None):
                config = load_config(path)

        assert config.notify_radius_miles == 12.5
        assert config.delivery.channel_type == "log"

    def test_returns_default_config_when_file_not_found(self):
        """Missing file gives defaults."""
        with patch(NO_SECRETS, return_value=None):
            config = load_config("/nonexistent/config.yaml")
        assert config == Config()

    def test_returns_default_config_for_empty_file(self):
        """Empty file gives defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text("")

            with patch(NO_SECRETS, return_value=None):
                config = load_config(path)

        assert config == Config()

    def test_uses_config_path_env_var(self):
        """CONFIG_PATH is used when no path is given."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "custom.yaml"
            path.write_text("lookback_hours: 3\n")

            with patch.dict(os.environ, {"CONFIG_PATH": str(path)}):
                with patch(NO_SECRETS, return_value=None):
                    config = load_config()

        assert config.lookback_hours == 3


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_log_channel_without_webhook(self):
        """Without a webhook URL alerts are only logged."""
        with patch.dict(os.environ, {}, clear=True):
            with patch(NO_SECRETS, return_value=None):
                config = load_config_from_env()

        assert config.delivery.channel_type == "log"
        assert config.notify_radius_miles == 20.0

    def test_loads_config_from_env_vars(self):
        """Environment variables override defaults."""
        env = {
            "DELIVERY_WEBHOOK_URL": "https://hook",
            "NOTIFY_RADIUS_MILES": "30",
            "LOOKBACK_HOURS": "12",
            "DELIVERY_CONCURRENCY": "2",
            "DELIVERY_TIMEOUT_SECONDS": "3.5",
            "STORAGE_BACKEND": "firestore",
            "FIRESTORE_DATABASE": "alerts",
        }
        with patch.dict(os.environ, env, clear=True):
            with patch(NO_SECRETS, return_value=None):
                config = load_config_from_env()

        assert config.delivery.channel_type == "webhook"
        assert config.delivery.webhook_url == "https://hook"
        assert config.notify_radius_miles == 30.0
        assert config.lookback_hours == 12
        assert config.delivery_concurrency == 2
        assert config.delivery_timeout_seconds == 3.5
        assert config.storage_backend == "firestore"
        assert config.firestore_database == "alerts"

    def test_uses_secret_manager_when_available(self):
        """Secret Manager supplies the webhook URL."""
        mock_client = Mock()
        mock_client.get_secret_or_env.return_value = "https://secret-hook"

        with patch.dict(os.environ, {}, clear=True):
            with patch(NO_SECRETS, return_value=mock_client):
                config = load_config_from_env()

        assert config.delivery.webhook_url == "https://secret-hook"
        mock_client.get_secret_or_env.assert_called_once_with(
            "alert-webhook-url", "DELIVERY_WEBHOOK_URL"
        )
