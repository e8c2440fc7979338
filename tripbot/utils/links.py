"""
Affiliate link builder.

Pure functions: the same destination and config always give the same URLs.
Missing provider config falls back to a placeholder domain so replies
still carry a clickable link.
"""
from urllib.parse import quote, urlencode

from tripbot.config import AffiliateConfig, ProviderConfig

PLACEHOLDER_BASE = "https://example.com/search?q="
RECOMMENDED_SORT = "sort=RECOMMENDED"


def _encode(destination: str) -> str:
    # same safe set as JavaScript's encodeURIComponent
    return quote((destination or "").strip(), safe="-_.!~*'()")


def _search_url(destination: str, provider: ProviderConfig | None) -> str:
    provider = provider or ProviderConfig()
    base = provider.base_url or PLACEHOLDER_BASE
    url = f"{base}{_encode(destination)}{provider.query_suffix or ''}"
    if provider.params:
        url += "&" + urlencode(sorted(provider.params.items()))
    return url


def build_tour_links(destination: str, config: AffiliateConfig | None = None) -> list[str]:
    """[plain search, recommended-sort search]."""
    config = config or AffiliateConfig()
    search = _search_url(destination, config.tours)
    return [search, f"{search}&{RECOMMENDED_SORT}"]


def build_hotel_links(destination: str, config: AffiliateConfig | None = None) -> list[str]:
    config = config or AffiliateConfig()
    search = _search_url(destination, config.hotels)
    return [search, f"{search}&page=2"]


def build_flight_links(route: str, config: AffiliateConfig | None = None) -> list[str]:
    config = config or AffiliateConfig()
    return [_search_url(route, config.flights)]


def build_links(service: str, destination: str, config: AffiliateConfig | None = None) -> list[str]:
    builders = {
        "tours": build_tour_links,
        "hotels": build_hotel_links,
        "flights": build_flight_links,
    }
    return builders[service](destination, config)
