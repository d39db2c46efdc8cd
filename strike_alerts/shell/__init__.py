"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Storage backends (in-memory, Firestore)
- ZIP code lookup (HTTP)
- Alert delivery (webhook, WhatsApp, log)
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All business logic should be in core.
"""

from strike_alerts.shell.memory_store import InMemoryStore
from strike_alerts.shell.delivery import DeliveryResponse, LogDeliveryClient
from strike_alerts.shell.zip_lookup_client import ZipLookupClient
from strike_alerts.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "InMemoryStore",
    "DeliveryResponse",
    "LogDeliveryClient",
    "ZipLookupClient",
    "load_config",
    "load_config_from_env",
]
