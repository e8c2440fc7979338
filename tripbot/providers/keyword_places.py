import re
from typing import Iterable, Optional

from tripbot.providers.base import PlaceExtractor

DEFAULT_PLACES = (
    # East Africa
    "Nairobi", "Mombasa", "Diani", "Malindi", "Watamu", "Lamu", "Naivasha", "Nakuru",
    "Maasai Mara", "Amboseli", "Tsavo", "Samburu", "Nanyuki", "Kisumu",
    "Zanzibar", "Dar es Salaam", "Arusha", "Serengeti", "Kilimanjaro", "Kigali", "Kampala",
    # further afield
    "Cape Town", "Johannesburg", "Dubai",
    "Sydney", "Melbourne", "Cairns", "Brisbane", "Perth", "Adelaide", "Darwin", "Hobart",
)

ALIASES = {
    "masai mara": "Maasai Mara",
    "mara": "Maasai Mara",
    "dar": "Dar es Salaam",
    "kili": "Kilimanjaro",
}


class KeywordPlaceExtractor(PlaceExtractor):
    """
    Keyword-list stand-in for real place-name extraction.

    Matches whole words, case-insensitively, and returns places in order
    of first mention.
    """

    def __init__(self, places: Optional[Iterable[str]] = None, aliases: Optional[dict] = None):
        self.places = tuple(places or DEFAULT_PLACES)
        self.aliases = dict(ALIASES if aliases is None else aliases)
        names = {p.lower(): p for p in self.places}
        for alias, canonical in self.aliases.items():
            names.setdefault(alias.lower(), canonical)
        self._names = names
        # longest first so "Dar es Salaam" wins over "Dar"
        pattern = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
        self._re = re.compile(rf"\b({pattern})\b", re.IGNORECASE) if pattern else None

    def extract(self, text: str) -> list[str]:
        if not text or not self._re:
            return []
        found: list[str] = []
        for m in self._re.finditer(text):
            place = self._names[m.group(1).lower()]
            if place not in found:
                found.append(place)
        return found
