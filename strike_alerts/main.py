"""Cloud Function Entry Points.

Thin wrappers that load configuration, build one Orchestrator per
process, and hand requests to it.
"""

import logging
import os
import threading
from typing import Any

import functions_framework
from flask import Request, Response

from strike_alerts.api_handler import handle_request
from strike_alerts.core.config import Config, validate_config
from strike_alerts.orchestrator import Orchestrator
from strike_alerts.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


_orchestrator: Orchestrator | None = None
_orchestrator_lock = threading.Lock()


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        config = load_config(config_path)
    elif os.environ.get("STORAGE_BACKEND") or os.environ.get("DELIVERY_WEBHOOK_URL"):
        config = load_config_from_env()
    else:
        config = load_config()

    result = validate_config(config)
    for issue in result.warnings:
        logger.warning("Config %s: %s", issue.field, issue.message)
    for issue in result.critical_errors:
        logger.error("Config %s: %s", issue.field, issue.message)

    return config


def get_orchestrator() -> Orchestrator:
    """Return the process-wide orchestrator, creating it on first use."""
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = Orchestrator(_get_config())
    return _orchestrator


@functions_framework.http
def strike_alerts_api(request: Request) -> Response:
    """HTTP Cloud Function entry point for the API."""
    return handle_request(request, get_orchestrator())


@functions_framework.http
def delivery_pass(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point for a delivery pass.

    Triggered by Cloud Scheduler or direct HTTP requests.

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting delivery pass")

    try:
        result = get_orchestrator().run_delivery_pass()

        response = {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            **result.as_dict(),
        }
        if result.errors:
            response["errors"] = result.errors

        logger.info("Completed: %s", result.summary)

        status_code = 200 if result.success else 207  # 207 = Multi-Status
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in delivery pass")
        return {
            "status": "error",
            "message": str(e),
        }, 500


@functions_framework.cloud_event
def delivery_pass_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point for a delivery pass.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting delivery pass (Pub/Sub trigger)")

    result = get_orchestrator().run_delivery_pass()
    logger.info("Completed: %s", result.summary)

    for error in result.errors:
        logger.warning("Left pending: %s", error)
