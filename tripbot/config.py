import logging
import os
from dataclasses import dataclass, field
from urllib.parse import parse_qsl

import pycountry
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_VIATOR_BASE = "https://www.viator.com/searchResults/all?text="
DEFAULT_BOOKING_BASE = "https://your-booking-affiliate-search-url.com/search?q="
DEFAULT_FLIGHTS_BASE = "https://your-flights-affiliate-search-url.com/search?route="


def _env(*names: str, default: str | None = None) -> str | None:
    """First non-empty value among several spellings of the same variable."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _currency(code: str | None) -> str:
    code = (code or "KES").strip().upper()
    if pycountry.currencies.get(alpha_3=code) is None:
        logger.warning("Unknown ITINERARY_CURRENCY %r, falling back to KES", code)
        return "KES"
    return code


@dataclass(frozen=True)
class ProviderConfig:
    """Affiliate search endpoint: base URL, suffix and partner credential params."""

    base_url: str | None = None
    query_suffix: str = ""
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AffiliateConfig:
    tours: ProviderConfig = field(default_factory=lambda: ProviderConfig(DEFAULT_VIATOR_BASE))
    hotels: ProviderConfig = field(default_factory=lambda: ProviderConfig(DEFAULT_BOOKING_BASE))
    flights: ProviderConfig = field(default_factory=lambda: ProviderConfig(DEFAULT_FLIGHTS_BASE))


@dataclass(frozen=True)
class Settings:
    # transport
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_number: str | None = None

    database_url: str = "sqlite:///tripbot.db"
    port: int = 3000

    affiliates: AffiliateConfig = field(default_factory=AffiliateConfig)

    # payment
    paystack_secret_key: str | None = None
    paystack_base_url: str = "https://api.paystack.co"
    paystack_callback_url: str | None = None
    itinerary_amount: int = 600 * 100  # smallest currency unit
    itinerary_currency: str = "KES"
    customer_email_domain: str = "huguadventures.com"

    # completion
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    llm_timeout_seconds: int = 60

    # storage
    aws_region: str | None = None
    s3_bucket: str | None = None
    s3_base_url: str | None = None
    storage_timeout_seconds: int = 30

    session_ttl_minutes: int = 24 * 60
    max_sessions: int = 10000

    destination_keywords: tuple[str, ...] = ()

    brand_name: str = "Hugu Adventures"
    display_timezone: str = "Africa/Nairobi"
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()

    partner_params = dict(parse_qsl(os.getenv("VIATOR_PARTNER_PARAMS", ""), keep_blank_values=False))
    affiliates = AffiliateConfig(
        tours=ProviderConfig(
            base_url=_env("VIATOR_AFFILIATE_BASE", default=DEFAULT_VIATOR_BASE),
            query_suffix=os.getenv("VIATOR_AFFILIATE_SUFFIX", ""),
            params=partner_params,
        ),
        hotels=ProviderConfig(base_url=_env("BOOKING_BASE_URL", default=DEFAULT_BOOKING_BASE)),
        flights=ProviderConfig(base_url=_env("FLIGHTS_BASE_URL", default=DEFAULT_FLIGHTS_BASE)),
    )

    keywords = tuple(
        k.strip() for k in os.getenv("DESTINATION_KEYWORDS", "").split(",") if k.strip()
    )

    return Settings(
        # support both styles of env var naming
        twilio_account_sid=_env("TWILIO_SID", "TWILIO_ACCOUNT_SID"),
        twilio_auth_token=_env("TWILIO_AUTH", "TWILIO_AUTH_TOKEN"),
        twilio_number=_env("TWILIO_NUMBER"),
        database_url=_env("DATABASE_URL", default="sqlite:///tripbot.db"),
        port=_env_int("PORT", 3000),
        affiliates=affiliates,
        paystack_secret_key=_env("PAYSTACK_SECRET_KEY"),
        paystack_base_url=_env("PAYSTACK_BASE_URL", default="https://api.paystack.co"),
        paystack_callback_url=_env("PAYSTACK_CALLBACK_URL"),
        itinerary_amount=_env_int("ITINERARY_AMOUNT_KES", 600) * 100,
        itinerary_currency=_currency(os.getenv("ITINERARY_CURRENCY")),
        customer_email_domain=_env("CUSTOMER_EMAIL_DOMAIN", default="huguadventures.com"),
        openai_api_key=_env("OPENAI_API_KEY"),
        openai_model=_env("OPENAI_MODEL", default="gpt-4.1-mini"),
        llm_timeout_seconds=_env_int("LLM_TIMEOUT_SECONDS", 60),
        aws_region=_env("AWS_REGION"),
        s3_bucket=_env("AWS_S3_BUCKET"),
        s3_base_url=_env("AWS_S3_BASE_URL"),
        storage_timeout_seconds=_env_int("STORAGE_TIMEOUT_SECONDS", 30),
        session_ttl_minutes=_env_int("SESSION_TTL_MINUTES", 24 * 60),
        max_sessions=_env_int("MAX_SESSIONS", 10000),
        destination_keywords=keywords,
        brand_name=_env("BRAND_NAME", default="Hugu Adventures"),
        display_timezone=_env("DISPLAY_TIMEZONE", default="Africa/Nairobi"),
        log_level=_env("LOG_LEVEL", default="INFO").upper(),
    )
