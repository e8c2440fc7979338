import re
from typing import Iterable

from tripbot.config import AffiliateConfig
from tripbot.utils.links import build_tour_links
from tripbot.utils.tokens import CityTokens, contains_tokens, substitute_tokens

SENTINEL_KEYWORD = "DESTINATIONS"
SENTINEL_DELIMITER = "|"
MAX_DESTINATIONS = 5

_SENTINEL_RE = re.compile(r"^[\s*_~>#-]*DESTINATIONS[\s*_~]*:(?P<payload>.*)$", re.IGNORECASE)
_MARKUP = "*_~` "


def _sentinel_matches(raw_text: str) -> list[re.Match]:
    return [m for m in (_SENTINEL_RE.match(line) for line in (raw_text or "").splitlines()) if m]


def extract_destinations(raw_text: str) -> list[str]:
    """Cities named on the trailing DESTINATIONS line (the last one wins)."""
    matches = _sentinel_matches(raw_text)
    if not matches:
        return []
    out: list[str] = []
    for part in matches[-1].group("payload").split(SENTINEL_DELIMITER):
        name = part.strip().strip(_MARKUP).strip()
        if name and name.lower() not in {c.lower() for c in out}:
            out.append(name)
    return out[:MAX_DESTINATIONS]


def strip_sentinel_line(raw_text: str) -> str:
    lines = [line for line in (raw_text or "").splitlines() if not _SENTINEL_RE.match(line)]
    return "\n".join(lines).rstrip()


def append_links_section(body: str, cities: Iterable[str], config: AffiliateConfig | None = None) -> str:
    cities = [c for c in cities if c and c.strip()]
    if not cities:
        return body
    lines = ["", "", "🔗 *Book tours & activities*"]
    for city in cities:
        search, recommended = build_tour_links(city, config)
        lines.append(f"*{city.strip()}*")
        lines.append(f"• Browse all tours: {search}")
        lines.append(f"• Recommended tours: {recommended}")
    return body.rstrip() + "\n".join(lines)


def finalize_itinerary(
    raw_text: str,
    vocabulary: dict[str, CityTokens],
    config: AffiliateConfig | None = None,
) -> tuple[str, str]:
    """
    Turn raw generated text into user-facing text.

    Returns (text, strategy). A body carrying tokens gets them substituted
    in place ("tokens"); a body without any gets the links section appended
    for the sentinel cities, or the vocabulary cities when there is no
    sentinel ("section"). One text never gets both.
    """
    cities = extract_destinations(raw_text)
    body = strip_sentinel_line(raw_text)
    if contains_tokens(body):
        return substitute_tokens(body, vocabulary, config), "tokens"
    if not cities:
        cities = [t.city for t in vocabulary.values()]
    return append_links_section(body, cities[:MAX_DESTINATIONS], config), "section"
