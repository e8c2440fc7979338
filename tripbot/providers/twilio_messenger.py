import logging
from typing import Optional

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from tripbot.providers.base import Messenger, MessagingError

logger = logging.getLogger(__name__)


class TwilioMessenger(Messenger):
    """WhatsApp messages through the Twilio Messages API."""

    def __init__(self, account_sid: Optional[str], auth_token: Optional[str], from_number: Optional[str]):
        self.account_sid = account_sid
        self.from_number = self._format_whatsapp_number(from_number) if from_number else None
        self.client: Optional[Client] = None
        if account_sid and auth_token:
            self.client = Client(account_sid, auth_token)

    @staticmethod
    def _format_whatsapp_number(number: str) -> str:
        number = number.strip()
        if number.startswith("whatsapp:"):
            return number
        if not number.startswith("+"):
            number = f"+{number}"
        return f"whatsapp:{number}"

    def is_configured(self) -> bool:
        return bool(self.client and self.from_number)

    def _create(self, **params) -> str:
        if not self.is_configured():
            raise MessagingError("Twilio service is not properly configured")
        to = self._format_whatsapp_number(params.pop("to"))
        try:
            message = self.client.messages.create(from_=self.from_number, to=to, **params)
        except TwilioRestException as e:
            raise MessagingError(f"Twilio error {e.status}: {e.msg}") from e
        except (TwilioException, requests.RequestException) as e:
            # the HTTP client lets connection errors through unwrapped
            raise MessagingError(f"Twilio request failed: {e}") from e
        logger.info("WhatsApp message sent to %s. SID: %s status: %s", to, message.sid, message.status)
        return message.sid

    def send_text(self, to: str, body: str) -> str:
        return self._create(to=to, body=body)

    def send_media(self, to: str, body: str, media_url: str) -> str:
        return self._create(to=to, body=body, media_url=[media_url])
