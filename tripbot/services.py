import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from tripbot.agents.itinerary import ItineraryGenerator
from tripbot.config import Settings, load_settings
from tripbot.db import init_db, make_engine, make_session_factory
from tripbot.dispatcher import MessageDispatcher
from tripbot.graph.delivery import DeliveryPipeline
from tripbot.graph.graph import ConversationWorkflow
from tripbot.llm.completion import OpenAICompletionProvider
from tripbot.providers.base import (
    CompletionProvider,
    Messenger,
    ObjectStorage,
    PaymentGateway,
    PlaceExtractor,
)
from tripbot.providers.keyword_places import KeywordPlaceExtractor
from tripbot.providers.paystack import PaystackGateway
from tripbot.providers.s3_storage import S3Storage
from tripbot.providers.twilio_messenger import TwilioMessenger
from tripbot.repository import ItineraryRepository
from tripbot.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    engine: Engine
    repository: ItineraryRepository
    store: SessionStore
    messenger: Messenger
    gateway: PaymentGateway
    storage: ObjectStorage
    completion: CompletionProvider
    places: PlaceExtractor
    generator: ItineraryGenerator
    dispatcher: MessageDispatcher
    pipeline: DeliveryPipeline
    workflow: ConversationWorkflow


def build_services(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    messenger: Optional[Messenger] = None,
    gateway: Optional[PaymentGateway] = None,
    storage: Optional[ObjectStorage] = None,
    completion: Optional[CompletionProvider] = None,
    places: Optional[PlaceExtractor] = None,
) -> Services:
    """Wire every collaborator from settings; any of them can be passed in instead."""
    settings = settings or load_settings()
    logger.info(
        "Twilio configured: sid=%s auth=%s number=%s",
        bool(settings.twilio_account_sid), bool(settings.twilio_auth_token), bool(settings.twilio_number),
    )

    engine = engine or make_engine(settings.database_url)
    init_db(engine)
    repository = ItineraryRepository(make_session_factory(engine))

    store = SessionStore(
        ttl_seconds=settings.session_ttl_minutes * 60,
        max_sessions=settings.max_sessions,
    )

    messenger = messenger or TwilioMessenger(
        settings.twilio_account_sid, settings.twilio_auth_token, settings.twilio_number
    )
    gateway = gateway or PaystackGateway(
        settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        callback_url=settings.paystack_callback_url,
    )
    storage = storage or S3Storage(
        settings.s3_bucket,
        settings.s3_base_url,
        region=settings.aws_region,
        timeout=settings.storage_timeout_seconds,
    )
    completion = completion or OpenAICompletionProvider(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        timeout=settings.llm_timeout_seconds,
    )
    places = places or KeywordPlaceExtractor(settings.destination_keywords or None)

    generator = ItineraryGenerator(completion, places, settings.affiliates, settings.brand_name)
    dispatcher = MessageDispatcher(messenger, repository)
    pipeline = DeliveryPipeline(repository, generator, storage, dispatcher, brand_name=settings.brand_name)
    workflow = ConversationWorkflow(settings, store, repository, dispatcher, pipeline, gateway, completion)

    return Services(
        settings=settings,
        engine=engine,
        repository=repository,
        store=store,
        messenger=messenger,
        gateway=gateway,
        storage=storage,
        completion=completion,
        places=places,
        generator=generator,
        dispatcher=dispatcher,
        pipeline=pipeline,
        workflow=workflow,
    )
