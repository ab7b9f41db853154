"""
Lexical query understanding.

Derives intent, a content-type hint, ranked keywords and synonym expansions
from a raw query string. Pure functions of the query plus fixed tables.
"""

import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any

INTENT_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("question", re.compile(r"\b(what|who|where|when|why|how)\b")),
    ("search", re.compile(r"\b(find|search|show|get|list)\b")),
    ("comparison", re.compile(r"\b(compare|versus|vs|difference)\b")),
    ("summarization", re.compile(r"\b(summarize|summary|tldr)\b")),
)

QUERY_TYPE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("image", re.compile(r"\b(image|photo|picture|screenshot)\b")),
    ("article", re.compile(r"\b(article|blog|post|news)\b")),
    ("video", re.compile(r"\b(video|youtube|watch)\b")),
    ("product", re.compile(r"\b(product|buy|purchase|price)\b")),
)

INTENTS = ("question", "search", "comparison", "summarization", "general")

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "about", "from", "into", "that", "this", "these",
        "those", "there", "their", "them", "then", "than", "what", "when",
        "where", "which", "have", "were", "your", "some", "does",
    }
)

SYNONYMS: dict[str, tuple[str, ...]] = {
    "car": ("vehicle", "automobile", "auto"),
    "image": ("picture", "photo", "screenshot"),
    "article": ("post", "blog", "news", "story"),
    "video": ("clip", "movie", "film"),
    "ai": ("artificial intelligence", "machine learning", "ml"),
}

MAX_KEYWORDS = 10

_WORD_RE = re.compile(r"\b\w+\b")


@dataclass(frozen=True)
class QueryAnalysis:
    """Ephemeral analysis of one query string."""

    original_query: str
    intent: str
    query_type: str
    keywords: list[str] = field(default_factory=list)
    expansions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("original_query")
        return data


def detect_intent(query: str) -> str:
    """First matching intent rule wins; falls back to ``general``."""
    lowered = query.lower()
    for intent, pattern in INTENT_RULES:
        if pattern.search(lowered):
            return intent
    return "general"


def classify_query_type(query: str) -> str:
    lowered = query.lower()
    for query_type, pattern in QUERY_TYPE_RULES:
        if pattern.search(lowered):
            return query_type
    return "general"


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Words longer than 3 chars, stop words removed, most frequent first."""
    words = _WORD_RE.findall(text.lower())
    counts = Counter(
        word for word in words if len(word) > 3 and word not in STOP_WORDS
    )
    # Counter keeps first-seen order, and sorted() is stable, so ties keep it
    ranked = sorted(counts.items(), key=lambda pair: -pair[1])
    return [word for word, _ in ranked[:limit]]


def expand_query(query: str) -> list[str]:
    """Query words plus synonyms for any word found in the synonym table."""
    words = _WORD_RE.findall(query.lower())
    expansions = dict.fromkeys(words)
    for word in words:
        for synonym in SYNONYMS.get(word, ()):
            expansions.setdefault(synonym)
    return list(expansions)


def analyze_query(query: str) -> QueryAnalysis:
    return QueryAnalysis(
        original_query=query,
        intent=detect_intent(query),
        query_type=classify_query_type(query),
        keywords=extract_keywords(query),
        expansions=expand_query(query),
    )


class QueryAnalyzer:
    """Injectable wrapper so callers can swap the analysis strategy."""

    def analyze(self, query: str) -> QueryAnalysis:
        return analyze_query(query)
