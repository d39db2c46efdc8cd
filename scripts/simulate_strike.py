#!/usr/bin/env python3
"""Simulate a lightning strike end to end.

Registers a user location, ingests a synthetic strike near it, and runs
one delivery pass. Uses the configured storage and delivery channel
unless told otherwise.

⚠️  WARNING: without --dry-run this delivers REAL alerts through the
    configured channel (webhook or WhatsApp).

Usage:
    # Everything in memory, alerts only logged
    python scripts/simulate_strike.py --dry-run

    # Chicago user, strike half a mile away
    python scripts/simulate_strike.py --dry-run --postal-code 60601 \\
        --latitude 41.8825 --longitude -87.6231

    # Skip the ZIP lookup by giving the user's coordinates
    python scripts/simulate_strike.py --dry-run \\
        --user-latitude 41.8781 --user-longitude -87.6298

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    GCP_PROJECT: GCP project ID for Secret Manager access
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from strike_alerts.core.errors import StrikeAlertsError
from strike_alerts.core.strike import StrikeReport
from strike_alerts.orchestrator import Orchestrator
from strike_alerts.shell.config_loader import load_config
from strike_alerts.shell.delivery import LogDeliveryClient
from strike_alerts.shell.memory_store import InMemoryStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Simulate a lightning strike alert")
    parser.add_argument("--user-id", default="test-user", help="User to register")
    parser.add_argument("--postal-code", default="60601", help="User's ZIP code")
    parser.add_argument("--user-latitude", type=float, help="User latitude (skips ZIP lookup)")
    parser.add_argument("--user-longitude", type=float, help="User longitude (skips ZIP lookup)")
    parser.add_argument("--latitude", type=float, default=41.8825, help="Strike latitude")
    parser.add_argument("--longitude", type=float, default=-87.6231, help="Strike longitude")
    parser.add_argument("--intensity", type=float, default=25.0, help="Strike intensity")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use in-memory storage instead of the configured backend",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log alerts instead of delivering them (implies --memory)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    config = load_config(os.environ.get("CONFIG_PATH"))

    store = InMemoryStore() if (args.memory or args.dry_run) else None
    delivery_client = LogDeliveryClient() if args.dry_run else None
    orchestrator = Orchestrator(config, store=store, delivery_client=delivery_client)

    try:
        location = orchestrator.register_location(
            user_id=args.user_id,
            postal_code=args.postal_code,
            latitude=args.user_latitude,
            longitude=args.user_longitude,
        )
        logger.info(
            "Registered %s at %s, %s (%.4f, %.4f)",
            location.user_id,
            location.city,
            location.region,
            location.latitude,
            location.longitude,
        )

        ingested = orchestrator.ingest_strike(StrikeReport(
            latitude=args.latitude,
            longitude=args.longitude,
            timestamp=datetime.now(timezone.utc),
            intensity=args.intensity,
        ))
    except StrikeAlertsError as e:
        logger.error("Simulation failed: %s", e)
        return 1

    logger.info("Strike %s recorded %d notification(s)", ingested.strike.id, len(ingested.notifications))
    for notification in ingested.notifications:
        logger.info("  %s: %.2f miles", notification.user_id, notification.distance_miles)

    result = orchestrator.run_delivery_pass()

    logger.info("=" * 50)
    logger.info("Delivery Summary: %s", result.summary)
    for error in result.errors:
        logger.info("  ✗ %s", error)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
