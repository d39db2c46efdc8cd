"""Delivery capability contract - Imperative Shell.

Every delivery client exposes attempt_delivery(user_id, message) and
returns a DeliveryResponse instead of raising. LogDeliveryClient is the
simplest implementation: it only writes the alert to the log.
"""

import logging
from dataclasses import dataclass

from strike_alerts.core.formatter import RenderedMessage


logger = logging.getLogger(__name__)


@dataclass
class DeliveryResponse:
    """Result of one delivery attempt.

    Attributes:
        success: Whether delivery was confirmed
        error: Error message if failed
    """
    success: bool
    error: str | None = None


class LogDeliveryClient:
    """Delivery client that logs alerts instead of sending them.

    Useful for dry runs and local development.
    """

    def __init__(self, fail_user_ids: set[str] | None = None) -> None:
        """Initialize log delivery client.

        Args:
            fail_user_ids: Users whose deliveries are reported as failed
        """
        self.fail_user_ids = set(fail_user_ids or ())
        self.delivered: list[tuple[str, RenderedMessage]] = []

    def attempt_delivery(self, user_id: str, message: RenderedMessage) -> DeliveryResponse:
        """Log the alert and report success."""
        if user_id in self.fail_user_ids:
            logger.warning("Simulated delivery failure for %s", user_id)
            return DeliveryResponse(success=False, error="Simulated failure")

        logger.info("Alert for %s: %s\n%s", user_id, message.subject, message.body)
        self.delivered.append((user_id, message))
        return DeliveryResponse(success=True)
