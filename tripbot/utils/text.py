import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import tz

WHATSAPP_TEXT_LIMIT = 1500


def shorten(text: str, limit: int, cut_at: Optional[int] = None, notice: str = "") -> str:
    """Cut `text` to `cut_at` (default `limit`) chars plus `notice` once it exceeds `limit`."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[: cut_at if cut_at is not None else limit] + notice


def phone_digits(sender: str) -> str:
    return re.sub(r"\D", "", (sender or "").replace("whatsapp:", ""))


def customer_email(sender: str, domain: str) -> str:
    """Synthesised checkout email; the user is never asked for one."""
    return f"wa{phone_digits(sender) or 'guest'}@{domain}"


def format_local(dt: datetime, zone: str) -> str:
    if dt.tzinfo is None:
        # SQLite hands back naive UTC
        dt = dt.replace(tzinfo=timezone.utc)
    local = tz.gettz(zone) or timezone.utc
    return dt.astimezone(local).strftime("%d/%m/%Y, %H:%M")
