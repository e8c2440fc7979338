import re

MENU_COMMANDS = {"menu", "hi", "hello", "start"}
VIEW_COMMANDS = {"itinerary", "my itinerary"}
EDIT_COMMANDS = {"edit itinerary", "edit trip"}

YES = {"yes", "y"}

DEFAULT_DAYS = 5
MIN_DAYS = 1
MAX_DAYS = 60

_DAYS_RE = re.compile(r"\b(\d{1,3})\s*-?\s*days?\b", re.IGNORECASE)
_BUDGET_RE = re.compile(r"\b(low|mid|middle|luxury)(?:[\s-]*(?:budget|range))?\b", re.IGNORECASE)


def normalize_text(text: str | None) -> str:
    return (text or "").strip().lower()


def detect_command(text: str) -> str | None:
    """'view' | 'edit' | 'menu' for global commands, else None."""
    t = normalize_text(text)
    if t in VIEW_COMMANDS:
        return "view"
    if t in EDIT_COMMANDS:
        return "edit"
    if t in MENU_COMMANDS:
        return "menu"
    return None


def is_yes(text: str) -> bool:
    return normalize_text(text) in YES


def extract_day_count(details: str | None) -> int | None:
    """'6 days', 'for 10 days', '3-day' -> n when 1 <= n <= 60, else None."""
    if not details:
        return None
    m = _DAYS_RE.search(details)
    if not m:
        return None
    n = int(m.group(1))
    if MIN_DAYS <= n <= MAX_DAYS:
        return n
    return None


def extract_budget(details: str | None) -> str | None:
    if not details:
        return None
    m = _BUDGET_RE.search(details)
    if not m:
        return None
    word = m.group(1).lower()
    return "mid" if word == "middle" else word
