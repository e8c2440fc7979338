"""
Placeholder tokens for affiliate links.

The model is given one pair of tokens per city and told to write those
instead of URLs; `substitute_tokens` swaps them for real links afterwards.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from tripbot.config import AffiliateConfig
from tripbot.utils.links import build_tour_links

SEARCH = "TOUR_SEARCH"
RECOMMENDED = "TOUR_RECOMMENDED"

TOKEN_RE = re.compile(r"\{\{(TOUR_SEARCH|TOUR_RECOMMENDED)::([A-Z0-9_]+)\}\}")

_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\(\s*https?://[^)\s]+\s*\)")
_URL_RE = re.compile(r"https?://\S+")


@dataclass(frozen=True)
class CityTokens:
    city: str
    key: str
    search_token: str
    recommended_token: str


def city_key(city: str) -> str:
    return re.sub(r"[^0-9A-Za-z]+", "_", city or "").strip("_").upper()


def make_token(kind: str, key: str) -> str:
    return "{{%s::%s}}" % (kind, key)


def build_token_vocabulary(cities: Iterable[str]) -> dict[str, CityTokens]:
    """Ordered mapping city -> tokens; cities without any alphanumerics are skipped."""
    vocab: dict[str, CityTokens] = {}
    seen_keys: set[str] = set()
    for city in cities:
        name = (city or "").strip()
        key = city_key(name)
        if not key or key in seen_keys:
            continue
        seen_keys.add(key)
        vocab[name] = CityTokens(
            city=name,
            key=key,
            search_token=make_token(SEARCH, key),
            recommended_token=make_token(RECOMMENDED, key),
        )
    return vocab


def contains_tokens(text: str) -> bool:
    return bool(TOKEN_RE.search(text or ""))


def substitute_tokens(
    text: str,
    vocabulary: dict[str, CityTokens],
    config: AffiliateConfig | None = None,
) -> str:
    """
    Replace every token with its tour link.

    Token-shaped strings whose key is not in the vocabulary are still
    replaced, using the key turned back into words as the destination.
    """
    if not text:
        return text
    by_key = {t.key: t.city for t in vocabulary.values()}

    def _replace(m: re.Match) -> str:
        kind, key = m.group(1), m.group(2)
        city = by_key.get(key) or key.replace("_", " ").title()
        search, recommended = build_tour_links(city, config)
        return recommended if kind == RECOMMENDED else search

    return TOKEN_RE.sub(_replace, text)


def vocabulary_listing(vocabulary: dict[str, CityTokens]) -> str:
    if not vocabulary:
        return "None."
    return "\n".join(
        f"- {t.city}: search {t.search_token} | recommended {t.recommended_token}"
        for t in vocabulary.values()
    )


def scrub_urls(text: str) -> str:
    """Drop URLs (markdown links keep their label) before showing old text to the model."""
    text = _MD_LINK_RE.sub(lambda m: m.group(1), text or "")
    return _URL_RE.sub("", text)
