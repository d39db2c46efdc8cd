"""WhatsApp Delivery Client via Twilio - Imperative Shell.

This module delivers alerts as WhatsApp messages via Twilio's WhatsApp
API. All I/O is contained here; message formatting is in the core module.
"""

import logging
from dataclasses import dataclass

from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient

from strike_alerts.core.formatter import RenderedMessage
from strike_alerts.shell.delivery import DeliveryResponse


logger = logging.getLogger(__name__)

# Seconds to wait on the Twilio API
DEFAULT_TIMEOUT = 10.0


@dataclass
class WhatsAppCredentials:
    """Twilio credentials for WhatsApp API.

    Attributes:
        account_sid: Twilio Account SID
        auth_token: Twilio Auth Token
        from_number: WhatsApp sender number (format: whatsapp:+14155238886)
    """
    account_sid: str
    auth_token: str
    from_number: str


def _whatsapp_address(number: str) -> str:
    if number.startswith("whatsapp:"):
        return number
    return f"whatsapp:{number}"


class WhatsAppDeliveryClient:
    """Client for delivering alerts via Twilio WhatsApp.

    This is part of the imperative shell - it handles I/O.
    Users are mapped to phone numbers through the recipients table.
    """

    def __init__(
        self,
        credentials: WhatsAppCredentials,
        recipients: dict[str, str],
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize WhatsApp client.

        Args:
            credentials: Twilio credentials
            recipients: WhatsApp numbers keyed by user ID
            timeout: Request timeout in seconds
        """
        self.credentials = credentials
        self.recipients = dict(recipients)
        self.timeout = timeout
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        """Lazy initialization of Twilio client."""
        if self._client is None:
            self._client = Client(
                self.credentials.account_sid,
                self.credentials.auth_token,
                http_client=TwilioHttpClient(timeout=self.timeout),
            )
        return self._client

    def attempt_delivery(self, user_id: str, message: RenderedMessage) -> DeliveryResponse:
        """Send an alert to the user's WhatsApp number.

        This method performs HTTP I/O.

        Args:
            user_id: Recipient user
            message: Rendered alert

        Returns:
            DeliveryResponse indicating success or failure
        """
        to_number = self.recipients.get(user_id)
        if not to_number:
            logger.warning("No WhatsApp number configured for %s", user_id)
            return DeliveryResponse(
                success=False,
                error=f"No WhatsApp number for user {user_id}",
            )

        logger.info("Sending WhatsApp alert for %s via Twilio", user_id)

        try:
            sent = self.client.messages.create(
                body=message.body,
                from_=_whatsapp_address(self.credentials.from_number),
                to=_whatsapp_address(to_number),
            )

            logger.info("WhatsApp message sent: %s", sent.sid)
            return DeliveryResponse(success=True)

        except TwilioRestException as e:
            logger.error("Twilio API error: %s", str(e))
            return DeliveryResponse(
                success=False,
                error=f"Twilio error: {e.msg}",
            )
        except Exception as e:
            logger.error("WhatsApp send failed: %s", str(e))
            return DeliveryResponse(
                success=False,
                error=str(e),
            )
