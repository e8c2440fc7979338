from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.pool import StaticPool

from tripbot.config import AffiliateConfig, ProviderConfig, Settings
from tripbot.db import init_db, make_session_factory
from tripbot.models import ItineraryRequest
from tripbot.providers.base import (
    CompletionError,
    CompletionProvider,
    Messenger,
    MessagingError,
    ObjectStorage,
    PaymentError,
    PaymentGateway,
    PaymentLink,
    StorageError,
)
from tripbot.providers.keyword_places import KeywordPlaceExtractor
from tripbot.repository import ItineraryRepository
from tripbot.server import create_app
from tripbot.services import build_services

SENDER = "whatsapp:+254700000001"


class FakeMessenger(Messenger):
    def __init__(self):
        self.sent = []  # (to, body, media_url)
        self.fail_media = False
        self.fail_all = False
        self.media_error = None  # raised as-is by send_media

    def send_text(self, to, body):
        if self.fail_all:
            raise MessagingError("transport down")
        self.sent.append((to, body, None))
        return f"SM{len(self.sent)}"

    def send_media(self, to, body, media_url):
        if self.media_error is not None:
            raise self.media_error
        if self.fail_all or self.fail_media:
            raise MessagingError("media rejected")
        self.sent.append((to, body, media_url))
        return f"SM{len(self.sent)}"

    def bodies(self, to=SENDER):
        return [b for t, b, _ in self.sent if t == to]


class FakeCompletion(CompletionProvider):
    """Returns queued replies in order, then `default`; an Exception in the queue is raised."""

    def __init__(self, default="Sure thing."):
        self.replies = []
        self.default = default
        self.calls = []  # (system, user, profile)

    def complete(self, system, user, profile="itinerary"):
        self.calls.append((system, user, profile))
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeGateway(PaymentGateway):
    def __init__(self):
        self.calls = []
        self.fail = False

    def initialize(self, amount, currency, email, reference, metadata):
        self.calls.append(dict(amount=amount, currency=currency, email=email,
                               reference=reference, metadata=metadata))
        if self.fail:
            raise PaymentError("gateway down")
        return PaymentLink(authorization_url=f"https://pay.test/{reference}", reference=reference)


class FakeStorage(ObjectStorage):
    def __init__(self):
        self.objects = {}
        self.fail = False

    def upload(self, key, data, content_type="application/pdf"):
        if self.fail:
            raise StorageError("bucket unreachable")
        self.objects[key] = (data, content_type)
        return f"https://files.test/{key}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return ItineraryRepository(make_session_factory(engine))


@pytest.fixture
def affiliates():
    return AffiliateConfig(
        tours=ProviderConfig(base_url="https://www.viator.com/searchResults/all?text=",
                             params={"pid": "P00012345", "mcid": "42383"}),
        hotels=ProviderConfig(base_url="https://hotels.test/search?q="),
        flights=ProviderConfig(base_url="https://flights.test/search?route="),
    )


@pytest.fixture
def settings(affiliates):
    return Settings(
        database_url="sqlite://",
        affiliates=affiliates,
        paystack_secret_key=None,
        brand_name="Hugu Adventures",
        display_timezone="Africa/Nairobi",
    )


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def services(settings, engine, messenger, gateway, storage, completion):
    return build_services(
        settings,
        engine=engine,
        messenger=messenger,
        gateway=gateway,
        storage=storage,
        completion=completion,
        places=KeywordPlaceExtractor(),
    )


@pytest.fixture
def client(services):
    app = create_app(services)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def completion_error():
    return CompletionError("model unavailable")


def make_paid_request(repository, sender=SENDER, text="Day 1: Nairobi", destination="Nairobi",
                      reference=None, pdf_url=None):
    row = repository.create_pending(
        sender=sender,
        last_service="tours",
        last_destination=destination,
        raw_details=f"{destination}, 5 days, mid budget",
        amount=60000,
        currency="KES",
    )
    reference = reference or f"REF_{row.id}"
    repository.attach_payment_reference(row.id, reference)
    repository.mark_paid(reference)
    if text:
        repository.save_itinerary_text(row.id, text)
    if pdf_url:
        repository.save_pdf_url(row.id, pdf_url)
    return repository.get(row.id)


def expire_edit_window(repository, request_id):
    with repository._sessions() as db:
        db.execute(
            update(ItineraryRequest)
            .where(ItineraryRequest.id == request_id)
            .values(editable_until=datetime.now(timezone.utc) - timedelta(days=1))
        )
        db.commit()
