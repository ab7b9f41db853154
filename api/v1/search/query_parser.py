"""
Heuristic filter extraction from natural language queries.

Pulls structured filters (colors, price bounds, relative dates, content type,
author) out of a query and leaves the remaining words as the text used for
semantic matching. Runs locally with no network calls.
"""

import re
from dataclasses import dataclass, field

from api.config.logging import get_logger
from api.v1.search.filters import DateRange, PriceRange, SearchFilters

logger = get_logger(__name__)

COLORS = (
    "black", "white", "red", "blue", "green", "yellow", "orange", "purple",
    "pink", "brown", "gray", "grey", "silver", "gold", "beige", "navy",
)

_AMOUNT = r"\$?\s*(\d+(?:[.,]\d+)*)"

_BETWEEN_RE = re.compile(rf"\bbetween\s+{_AMOUNT}\s+and\s+{_AMOUNT}", re.IGNORECASE)
_MAX_PRICE_RE = re.compile(
    rf"\b(?:under|below|less\s+than|cheaper\s+than)\s+{_AMOUNT}", re.IGNORECASE
)
_MIN_PRICE_RE = re.compile(
    rf"\b(?:over|above|more\s+than|at\s+least)\s+{_AMOUNT}", re.IGNORECASE
)
_PERIOD_RE = re.compile(
    r"\b(?:(?:saved|from|in|during|since)\s+)?"
    r"(today|yesterday|(?:last|past)\s+(?:week|month|year))\b",
    re.IGNORECASE,
)
_COLOR_RE = re.compile(rf"\b({'|'.join(COLORS)})\b", re.IGNORECASE)
_AUTHOR_BY_RE = re.compile(r"\bby\s+([A-Z][\w.'-]*(?:\s+[A-Z][\w.'-]*)*)")
_AUTHOR_SAID_RE = re.compile(
    r"\bwhat\s+did\s+([\w.'-]+(?:\s+[A-Z][\w.'-]*)?)\s+say(?:\s+about)?\b",
    re.IGNORECASE,
)

# Plural and singular mentions of each content type
_CONTENT_TYPE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("todo-list", re.compile(r"\b(?:to-?do|todo)(?:\s+lists?)?\b", re.IGNORECASE)),
    ("screenshot", re.compile(r"\bscreenshots?\b", re.IGNORECASE)),
    ("article", re.compile(r"\barticles?\b", re.IGNORECASE)),
    ("product", re.compile(r"\bproducts?\b", re.IGNORECASE)),
    ("video", re.compile(r"\bvideos?\b", re.IGNORECASE)),
    ("image", re.compile(r"\bimages?\b", re.IGNORECASE)),
    ("note", re.compile(r"\bnotes?\b", re.IGNORECASE)),
    ("bookmark", re.compile(r"\bbookmarks?\b", re.IGNORECASE)),
    ("receipt", re.compile(r"\breceipts?\b", re.IGNORECASE)),
    ("document", re.compile(r"\bdocuments?\b", re.IGNORECASE)),
)

_WHITESPACE_RE = re.compile(r"\s+")


def _amount(raw: str) -> float:
    return float(raw.replace(",", ""))


@dataclass
class ParsedQuery:
    """Search text plus the filters pulled out of a query."""

    search_text: str
    filters: SearchFilters = field(default_factory=SearchFilters)


class HeuristicQueryParser:
    """Regex-based filter extraction."""

    def parse(self, query: str) -> ParsedQuery:
        try:
            return self._parse(query)
        except Exception as e:
            logger.warning("Query parsing failed, using raw query", query=query, error=str(e))
            return ParsedQuery(search_text=query, filters=SearchFilters())

    def _parse(self, query: str) -> ParsedQuery:
        text = query
        values: dict = {}

        match = _BETWEEN_RE.search(text)
        if match:
            low, high = sorted((_amount(match.group(1)), _amount(match.group(2))))
            values["price"] = PriceRange(min=low, max=high)
            text = _remove(text, match)
        else:
            price_max = _MAX_PRICE_RE.search(text)
            if price_max:
                values.setdefault("price", PriceRange()).max = _amount(price_max.group(1))
                text = _remove(text, price_max)
            price_min = _MIN_PRICE_RE.search(text)
            if price_min:
                values.setdefault("price", PriceRange()).min = _amount(price_min.group(1))
                text = _remove(text, price_min)

        match = _PERIOD_RE.search(text)
        if match:
            values["date_range"] = DateRange(period=_normalize_space(match.group(1).lower()))
            text = _remove(text, match)

        match = _AUTHOR_SAID_RE.search(text)
        if match:
            values["author"] = match.group(1)
            text = _remove(text, match)
        else:
            match = _AUTHOR_BY_RE.search(text)
            if match:
                values["author"] = match.group(1)
                text = _remove(text, match)

        # Colors and content types stay in the search text; they carry meaning
        colors = list(dict.fromkeys(c.lower() for c in _COLOR_RE.findall(text)))
        if colors:
            values["colors"] = colors

        for content_type, pattern in _CONTENT_TYPE_PATTERNS:
            if pattern.search(text):
                values["content_type"] = content_type
                break

        search_text = _normalize_space(text).strip(" ,.?!")
        return ParsedQuery(
            search_text=search_text or query.strip(),
            filters=SearchFilters(**values),
        )


def _remove(text: str, match: re.Match[str]) -> str:
    return text[: match.start()] + " " + text[match.end() :]


def _normalize_space(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
