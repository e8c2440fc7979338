from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class ProviderError(Exception):
    pass


class MessagingError(ProviderError):
    pass


class PaymentError(ProviderError):
    pass


class StorageError(ProviderError):
    pass


class CompletionError(ProviderError):
    pass


@dataclass
class PaymentLink:
    authorization_url: str
    reference: str


class Messenger(ABC):
    @abstractmethod
    def send_text(self, to: str, body: str) -> str:
        """Send a text message; returns the transport message id."""

    @abstractmethod
    def send_media(self, to: str, body: str, media_url: str) -> str:
        ...


class PaymentGateway(ABC):
    @abstractmethod
    def initialize(
        self,
        amount: int,
        currency: str,
        email: str,
        reference: str,
        metadata: dict,
    ) -> PaymentLink:
        ...


class ObjectStorage(ABC):
    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        """Store bytes under `key`; returns the public URL."""


class CompletionProvider(ABC):
    @abstractmethod
    def complete(self, system: str, user: str, profile: str = "itinerary") -> str:
        ...


class PlaceExtractor(ABC):
    @abstractmethod
    def extract(self, text: str) -> list[str]:
        """Ordered, de-duplicated place names mentioned in `text`."""


@dataclass
class OutboundMessage:
    body: str
    media_url: Optional[str] = None
    # sent instead when the media message can't be delivered
    fallback_body: Optional[str] = None
