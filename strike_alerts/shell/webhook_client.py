"""Webhook Delivery Client - Imperative Shell.

This module delivers rendered alerts by POSTing JSON to a webhook
(for example an email relay). All I/O is contained here; message
formatting is in the core module.
"""

import logging

import requests

from strike_alerts.core.formatter import RenderedMessage
from strike_alerts.shell.delivery import DeliveryResponse


logger = logging.getLogger(__name__)


# Default timeout for webhook requests (seconds)
DEFAULT_TIMEOUT = 10


class WebhookDeliveryClient:
    """Client for delivering alerts to a webhook.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, webhook_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize webhook client.

        Args:
            webhook_url: Endpoint that accepts alert payloads
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def attempt_delivery(self, user_id: str, message: RenderedMessage) -> DeliveryResponse:
        """Deliver an alert to the webhook.

        This method performs HTTP I/O. Any 2xx status confirms delivery.

        Args:
            user_id: Recipient user
            message: Rendered alert

        Returns:
            DeliveryResponse indicating success or failure
        """
        logger.info("Delivering alert for %s to webhook", user_id)

        payload = {
            **message.payload,
            "user_id": user_id,
            "subject": message.subject,
            "text": message.body,
        }

        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )

            if 200 <= response.status_code < 300:
                logger.info("Alert delivered for %s", user_id)
                return DeliveryResponse(success=True)

            error_text = response.text
            logger.warning(
                "Webhook returned non-2xx: %d - %s",
                response.status_code,
                error_text,
            )
            return DeliveryResponse(
                success=False,
                error=f"HTTP {response.status_code}: {error_text}",
            )

        except requests.Timeout:
            logger.error("Webhook request timed out")
            return DeliveryResponse(
                success=False,
                error="Request timed out",
            )
        except requests.RequestException as e:
            logger.error("Webhook request failed: %s", str(e))
            return DeliveryResponse(
                success=False,
                error=str(e),
            )
