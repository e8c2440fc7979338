import pytest

from tripbot.agents.fallback import fallback_itinerary
from tripbot.graph.intent import (
    DEFAULT_DAYS,
    detect_command,
    extract_budget,
    extract_day_count,
    is_yes,
)


@pytest.mark.parametrize("text,expected", [
    ("6 days in Kenya", 6),
    ("for 10 days", 10),
    ("a 3-day trip", 3),
    ("1 day", 1),
    ("60 days", 60),
    ("61 days", None),
    ("0 days", None),
    ("about a week", None),
    (None, None),
])
def test_extract_day_count(text, expected):
    assert extract_day_count(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("Mid budget please", "mid"),
    ("middle-range", "mid"),
    ("LUXURY all the way", "luxury"),
    ("low", "low"),
    ("whatever fits", None),
])
def test_extract_budget(text, expected):
    assert extract_budget(text) == expected


@pytest.mark.parametrize("text,expected", [
    (" MENU ", "menu"),
    ("Hi", "menu"),
    ("start", "menu"),
    ("itinerary", "view"),
    ("My Itinerary", "view"),
    ("edit itinerary", "edit"),
    ("Edit Trip", "edit"),
    ("menu please", None),
    ("5", None),
])
def test_detect_command(text, expected):
    assert detect_command(text) == expected


def test_is_yes():
    assert is_yes("YES")
    assert is_yes(" y ")
    assert not is_yes("yes please")


def test_fallback_uses_requested_days():
    text = fallback_itinerary("Nairobi", "Nairobi, 6 days, mid budget")
    assert text.startswith("🧳 *Draft Itinerary for Nairobi*")
    assert "*Day 6:*" in text
    assert "*Day 7:*" not in text
    assert "Arrival in Nairobi" in text
    assert "EDIT ITINERARY" in text


@pytest.mark.parametrize("details", [None, "", "a 90 days sabbatical"])
def test_fallback_defaults_to_five_days(details):
    text = fallback_itinerary("Diani", details)
    assert f"*Day {DEFAULT_DAYS}:*" in text
    assert f"*Day {DEFAULT_DAYS + 1}:*" not in text


def test_fallback_without_destination():
    assert "Draft Itinerary for your trip" in fallback_itinerary(None, "2 days")
