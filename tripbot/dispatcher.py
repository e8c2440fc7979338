import logging
from typing import Iterable

from tripbot.providers.base import Messenger, MessagingError, OutboundMessage
from tripbot.repository import ItineraryRepository

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Sends queued outbound messages to one sender, in order.

    A failed send is logged and skipped so the remaining messages still go
    out; a failed media send is retried once as plain text when the message
    carries a `fallback_body`.
    """

    def __init__(self, messenger: Messenger, repository: ItineraryRepository):
        self.messenger = messenger
        self.repository = repository

    def _send_one(self, to: str, msg: OutboundMessage) -> bool:
        try:
            if msg.media_url:
                self.messenger.send_media(to, msg.body, msg.media_url)
            else:
                self.messenger.send_text(to, msg.body)
        except MessagingError as e:
            logger.error("Send to %s failed: %s", to, e)
            self.repository.log_message(to, "outbound", msg.body, msg.media_url, status="failed")
            return False
        except Exception:
            logger.exception("Unexpected error sending to %s", to)
            self.repository.log_message(to, "outbound", msg.body, msg.media_url, status="failed")
            return False
        self.repository.log_message(to, "outbound", msg.body, msg.media_url, status="sent")
        return True

    def send(self, to: str, messages: Iterable[OutboundMessage]) -> int:
        sent = 0
        for msg in messages:
            if self._send_one(to, msg):
                sent += 1
            elif msg.media_url and msg.fallback_body:
                logger.info("Media send to %s failed, sending text fallback", to)
                if self._send_one(to, OutboundMessage(body=msg.fallback_body)):
                    sent += 1
        return sent
