"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the strike_alerts package.
"""

from strike_alerts.main import (
    delivery_pass,
    delivery_pass_pubsub,
    strike_alerts_api,
)

__all__ = [
    "delivery_pass",
    "delivery_pass_pubsub",
    "strike_alerts_api",
]
