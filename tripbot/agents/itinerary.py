# tripbot/agents/itinerary.py
"""
Itinerary drafting: prompt the completion service with a per-city token
vocabulary, then turn the raw text into user-facing text with real links.
Any completion failure falls back to the fixed template.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from tripbot.agents.fallback import fallback_itinerary
from tripbot.config import AffiliateConfig
from tripbot.graph.intent import extract_budget, extract_day_count
from tripbot.llm.prompts import (
    ITINERARY_SYSTEM_PROMPT,
    itinerary_update_user_prompt,
    itinerary_user_prompt,
)
from tripbot.providers.base import CompletionProvider, PlaceExtractor
from tripbot.utils.links import build_tour_links
from tripbot.utils.postprocess import MAX_DESTINATIONS, extract_destinations, finalize_itinerary
from tripbot.utils.tokens import CityTokens, build_token_vocabulary, scrub_urls, vocabulary_listing

logger = logging.getLogger(__name__)


@dataclass
class ItineraryPrompt:
    original_text: str
    budget: Optional[str] = None
    day_count: Optional[int] = None


@dataclass
class ItineraryUpdatePrompt:
    original_itinerary_text: str
    edit_text: str
    budget: Optional[str] = None
    day_count: Optional[int] = None


@dataclass
class Draft:
    text: str
    source: str  # "ai" | "fallback"
    strategy: str  # "tokens" | "section"
    cities: list[str] = field(default_factory=list)
    error: Optional[str] = None


class ItineraryGenerator:
    def __init__(
        self,
        completion: CompletionProvider,
        places: PlaceExtractor,
        affiliates: Optional[AffiliateConfig] = None,
        brand_name: str = "Hugu Adventures",
    ):
        self.completion = completion
        self.places = places
        self.affiliates = affiliates or AffiliateConfig()
        self.brand_name = brand_name

    def _system_prompt(self) -> str:
        return ITINERARY_SYSTEM_PROMPT.format(brand=self.brand_name, max_destinations=MAX_DESTINATIONS)

    def vocabulary_for(self, *texts: Optional[str], default: Optional[str] = None) -> dict[str, CityTokens]:
        """Tokens for the places in the first text that mentions any; else for `default`."""
        for text in texts:
            cities = self.places.extract(text or "")
            if cities:
                return build_token_vocabulary(cities)
        return build_token_vocabulary([default] if default else [])

    def generate(self, request: ItineraryPrompt, vocabulary: dict[str, CityTokens]) -> str:
        user = itinerary_user_prompt(
            request.original_text,
            vocabulary_listing(vocabulary),
            budget=request.budget,
            day_count=request.day_count,
        )
        return self.completion.complete(self._system_prompt(), user, profile="itinerary")

    def generate_update(self, request: ItineraryUpdatePrompt, vocabulary: dict[str, CityTokens]) -> str:
        user = itinerary_update_user_prompt(
            scrub_urls(request.original_itinerary_text),
            request.edit_text,
            vocabulary_listing(vocabulary),
            budget=request.budget,
            day_count=request.day_count,
        )
        return self.completion.complete(self._system_prompt(), user, profile="itinerary")

    def city_links(self, cities: list[str]) -> dict[str, str]:
        """City -> recommended tours URL, for linking city mentions in the PDF."""
        return {c: build_tour_links(c, self.affiliates)[1] for c in cities}

    # ---------------------------
    # Draft with fallback
    # ---------------------------
    def _finish(self, raw: str, vocabulary: dict[str, CityTokens]) -> Draft:
        cities = extract_destinations(raw) or [t.city for t in vocabulary.values()]
        text, strategy = finalize_itinerary(raw, vocabulary, self.affiliates)
        return Draft(text=text, source="ai", strategy=strategy, cities=cities)

    def _fallback(self, destination: Optional[str], details: Optional[str],
                  vocabulary: dict[str, CityTokens], error: Exception) -> Draft:
        raw = fallback_itinerary(destination, details)
        text, strategy = finalize_itinerary(raw, vocabulary, self.affiliates)
        return Draft(
            text=text,
            source="fallback",
            strategy=strategy,
            cities=[t.city for t in vocabulary.values()],
            error=str(error),
        )

    def draft(self, raw_details: Optional[str], last_destination: Optional[str]) -> Draft:
        details = raw_details or ""
        request_text = details or f"Trip to {last_destination or 'a destination of your choice'}"
        vocabulary = self.vocabulary_for(details, last_destination, default=last_destination)
        request = ItineraryPrompt(
            original_text=request_text,
            budget=extract_budget(details),
            day_count=extract_day_count(details),
        )
        try:
            return self._finish(self.generate(request, vocabulary), vocabulary)
        except Exception as e:
            logger.error("Error generating AI itinerary, using fallback: %s", e)
            return self._fallback(last_destination or next(iter(vocabulary), None), details, vocabulary, e)

    def draft_update(
        self,
        original_itinerary_text: Optional[str],
        edit_text: str,
        raw_details: Optional[str],
        last_destination: Optional[str],
    ) -> Draft:
        vocabulary = self.vocabulary_for(edit_text, raw_details, last_destination, default=last_destination)
        request = ItineraryUpdatePrompt(
            original_itinerary_text=original_itinerary_text or "",
            edit_text=edit_text,
            budget=extract_budget(edit_text) or extract_budget(raw_details),
            day_count=extract_day_count(edit_text) or extract_day_count(raw_details),
        )
        try:
            return self._finish(self.generate_update(request, vocabulary), vocabulary)
        except Exception as e:
            logger.error("Error generating updated itinerary, using fallback: %s", e)
            details = edit_text if extract_day_count(edit_text) else (raw_details or edit_text)
            return self._fallback(last_destination or next(iter(vocabulary), None), details, vocabulary, e)
