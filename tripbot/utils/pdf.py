"""
Itinerary text -> paginated PDF.

Line heuristics:
    * first emphasised / heading line        -> document heading
    * "Day N ..." lines                        -> day headings
    * "•", "-", "*" prefixed lines             -> bullets
    * markdown links and bare URLs             -> clickable links
    * first mention of a known city            -> bold link to its tours
"""
from __future__ import annotations

import io
import re
from typing import Mapping, Optional
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

BRAND_COLOR = HexColor("#0b6e4f")
LINK_COLOR = "#1a5fb4"

DAY_RE = re.compile(r"^[\s*_#]*day\s+\d+\b", re.IGNORECASE)
BULLET_RE = re.compile(r"^\s*(?:[•●▪‣]|[-*](?=\s))\s*")
HEADING_RE = re.compile(r"^\s*(?:#{1,3}\s+|\*\*|__)")
LINK_RE = re.compile(r"\[([^\]]+)\]\(\s*(https?://[^)\s]+)\s*\)|(https?://[^\s)]+)")

_REPLACEMENTS = {
    "→": "->",
    "←": "<-",
    "’": "'",
    "‘": "'",
    "“": '"',
    "”": '"',
    "≈": "~",
}


def sanitize(text: str) -> str:
    """Keep to what the built-in Helvetica can draw (cp1252); emoji are dropped."""
    for src, dst in _REPLACEMENTS.items():
        text = text.replace(src, dst)
    return text.encode("cp1252", "ignore").decode("cp1252")


def _emphasis(escaped: str) -> str:
    out = re.sub(r"\*\*(.+?)\*\*", r"<b>\1</b>", escaped)
    out = re.sub(r"__(.+?)__", r"<u>\1</u>", out)
    out = re.sub(r"(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?![\w*])", r"<b>\1</b>", out)
    out = re.sub(r"(?<![\w_])_(?!\s)(.+?)(?<!\s)_(?![\w_])", r"<i>\1</i>", out)
    # unbalanced leftovers
    return re.sub(r"\*{2,}|_{2,}", "", out)


def _anchor(url: str, label: str, bold: bool = False) -> str:
    label = f"<b>{label}</b>" if bold else f"<u>{label}</u>"
    return f'<a href="{escape(url, {chr(34): "&quot;"})}" color="{LINK_COLOR}">{label}</a>'


class ItineraryPdfRenderer:
    def __init__(self, city_links: Optional[Mapping[str, str]] = None, brand_name: str = ""):
        self.city_links = {c: u for c, u in (city_links or {}).items() if c and u}
        self.brand_name = brand_name
        self._linked: set[str] = set()
        self._city_re = None
        if self.city_links:
            names = sorted(self.city_links, key=len, reverse=True)
            self._city_re = re.compile(
                r"\b(" + "|".join(re.escape(escape(n)) for n in names) + r")\b", re.IGNORECASE
            )
        styles = getSampleStyleSheet()
        self.styles = {
            "title": ParagraphStyle("ItinTitle", parent=styles["Title"], fontSize=20, leading=24,
                                    textColor=BRAND_COLOR),
            "heading": ParagraphStyle("ItinHeading", parent=styles["Heading2"], textColor=BRAND_COLOR),
            "day": ParagraphStyle("ItinDay", parent=styles["Heading3"], spaceBefore=10,
                                  textColor=BRAND_COLOR),
            "bullet": ParagraphStyle("ItinBullet", parent=styles["BodyText"], fontSize=10.5,
                                     leading=14, leftIndent=16, bulletIndent=4),
            "booking": ParagraphStyle("ItinBooking", parent=styles["BodyText"], fontSize=10.5,
                                      leading=14, leftIndent=16, textColor=HexColor("#333333")),
            "text": ParagraphStyle("ItinText", parent=styles["BodyText"], fontSize=10.5, leading=14),
        }

    # ---------------------------
    # Line classification / markup
    # ---------------------------
    def classify(self, line: str, first: bool = False) -> str:
        if not line.strip():
            return "blank"
        if DAY_RE.match(line):
            return "day"
        if "book tour" in line.lower() and LINK_RE.search(line):
            return "booking"
        if BULLET_RE.match(line):
            return "bullet"
        if first and HEADING_RE.match(line):
            return "heading"
        if HEADING_RE.match(line) and line.strip().endswith(("**", "__")):
            return "heading"
        return "text"

    def _link_cities(self, escaped: str) -> str:
        if not self._city_re:
            return escaped

        def _repl(m: re.Match) -> str:
            match_key = m.group(1).lower()
            for city, url in self.city_links.items():
                if escape(city).lower() == match_key and city not in self._linked:
                    self._linked.add(city)
                    return _anchor(url, m.group(1), bold=True)
            return m.group(1)

        return self._city_re.sub(_repl, escaped)

    def markup(self, line: str) -> str:
        """ReportLab paragraph markup for one line of itinerary text."""
        line = sanitize(line)
        parts: list[str] = []
        has_link = False
        pos = 0
        for m in LINK_RE.finditer(line):
            parts.append(_emphasis(escape(line[pos:m.start()])))
            label, url, bare = m.group(1), m.group(2), m.group(3)
            if bare:
                parts.append(_anchor(bare, escape(bare)))
            else:
                parts.append(_anchor(url, _emphasis(escape(label))))
            has_link = True
            pos = m.end()
        tail = _emphasis(escape(line[pos:]))
        if not has_link:
            return self._link_cities(tail)
        parts.append(tail)
        return "".join(parts)

    def paragraph(self, line: str, first: bool = False) -> Optional[Paragraph]:
        kind = self.classify(line, first=first)
        if kind == "blank":
            return None
        if kind == "bullet":
            return Paragraph(self.markup(BULLET_RE.sub("", line, count=1)), self.styles["bullet"],
                             bulletText="•")
        if kind == "heading":
            return Paragraph(self.markup(line.strip().lstrip("#").strip()), self.styles["heading"])
        return Paragraph(self.markup(line), self.styles[kind])

    # ---------------------------
    # Document
    # ---------------------------
    def _footer(self, canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(HexColor("#777777"))
        if self.brand_name:
            canvas.drawString(doc.leftMargin, 0.5 * inch, sanitize(self.brand_name))
        canvas.drawRightString(doc.pagesize[0] - doc.rightMargin, 0.5 * inch, f"Page {doc.page}")
        canvas.restoreState()

    def render(self, text: str, title: str) -> bytes:
        self._linked = set()
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=50,
            rightMargin=50,
            topMargin=50,
            bottomMargin=50,
            title=sanitize(title),
            author=sanitize(self.brand_name),
        )
        story = [Paragraph(escape(sanitize(title)), self.styles["title"]), Spacer(1, 0.2 * inch)]
        first = True
        for line in (text or "").splitlines():
            para = self.paragraph(line, first=first)
            if para is None:
                story.append(Spacer(1, 0.08 * inch))
                continue
            first = False
            story.append(para)
        doc.build(story, onFirstPage=self._footer, onLaterPages=self._footer)
        return buf.getvalue()


def render_itinerary_pdf(
    text: str,
    title: str = "Trip Itinerary",
    city_links: Optional[Mapping[str, str]] = None,
    brand_name: str = "",
) -> bytes:
    return ItineraryPdfRenderer(city_links, brand_name).render(text, title)
