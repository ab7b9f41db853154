"""
Search recommendations.

Autocomplete, related searches, content-based and trending suggestions. Used
as live autocomplete and as the fallback when a search finds nothing.
"""

import asyncio
from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from api.config.logging import get_logger
from api.config.settings import Settings
from api.v1.search.embedder import Embedder, cosine_similarity, preprocess_text
from api.v1.search.query_analyzer import QueryAnalyzer

logger = get_logger(__name__)

QUERY_PATTERNS = (
    "what is",
    "how to",
    "show me",
    "find all",
    "get me",
    "search for",
    "articles about",
    "videos on",
    "images of",
    "notes about",
)

CURATED_TRENDING = (
    ("recent saves", 0.9),
    ("important articles", 0.85),
    ("bookmarks from this week", 0.8),
    ("videos to watch", 0.75),
    ("notes and ideas", 0.7),
)

EMPTY_STATE = {
    "quick_actions": [
        {"text": "Save your first article", "action": "save"},
        {"text": "Upload an image", "action": "upload"},
        {"text": "Explore features", "action": "explore"},
    ],
    "example_queries": [
        {"text": 'Try: "articles about AI"', "type": "example"},
        {"text": 'Try: "videos saved last week"', "type": "example"},
        {"text": 'Try: "images with black color"', "type": "example"},
    ],
}

CONTENT_SAMPLE_TEXT_CHARS = 200


@dataclass
class Recommendation:
    text: str
    type: str
    confidence: float
    item_id: str | None = None
    count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RecommendationSet:
    suggestions: list[Recommendation] = field(default_factory=list)
    related_searches: list[Recommendation] = field(default_factory=list)
    trending: list[Recommendation] = field(default_factory=list)
    content_based: list[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "suggestions": [r.to_dict() for r in self.suggestions],
            "related_searches": [r.to_dict() for r in self.related_searches],
            "trending": [r.to_dict() for r in self.trending],
            "content_based": [r.to_dict() for r in self.content_based],
        }

    def total(self) -> int:
        return (
            len(self.suggestions)
            + len(self.related_searches)
            + len(self.trending)
            + len(self.content_based)
        )


class RecommendationTelemetry:
    """
    Recent search queries and how often each was searched.

    Only the last ``history_size`` searches are kept, and counts follow the
    history: when a search falls out of the window its count is decremented,
    so neither structure grows without bound.
    """

    def __init__(self, history_size: int = 100):
        self.history_size = history_size
        self.history: deque[tuple[str, datetime]] = deque()
        self.counts: Counter[str] = Counter()

    def record_search(self, query: str) -> None:
        query = query.strip()
        if not query:
            return
        self.history.append((query, datetime.now(UTC)))
        self.counts[query] += 1
        while len(self.history) > self.history_size:
            evicted, _ = self.history.popleft()
            self.counts[evicted] -= 1
            if self.counts[evicted] <= 0:
                del self.counts[evicted]

    def popular(self, limit: int = 3) -> list[tuple[str, int]]:
        return self.counts.most_common(limit)

    def reset(self) -> None:
        self.history.clear()
        self.counts.clear()


class RecommendationEngine:
    """Builds recommendation sets for a (possibly partial) query."""

    def __init__(
        self,
        embedder: Embedder,
        telemetry: RecommendationTelemetry,
        settings: Settings,
        analyzer: QueryAnalyzer | None = None,
    ):
        self.embedder = embedder
        self.telemetry = telemetry
        self.analyzer = analyzer or QueryAnalyzer()
        self.content_sample = settings.recommendation_content_sample
        self.similarity_floor = settings.recommendation_similarity_floor

    async def recommend(
        self, partial_query: str | None, user_items: list[Any], limit: int = 10
    ) -> RecommendationSet:
        """Never raises; failures produce an empty set."""
        try:
            if not partial_query or not partial_query.strip():
                return RecommendationSet(
                    trending=self.trending(5),
                    content_based=self.profile_suggestions(user_items, 5),
                )

            recommendations = RecommendationSet(
                suggestions=self.autocomplete(partial_query, user_items, limit),
                related_searches=self.related_searches(partial_query, limit),
                trending=self.trending(3),
            )
            if user_items:
                recommendations.content_based = await self.semantic_suggestions(
                    partial_query, user_items, limit
                )

            logger.debug(
                "Recommendations generated",
                query=partial_query,
                total=recommendations.total(),
            )
            return recommendations
        except Exception as e:
            logger.error("Recommendation generation failed", query=partial_query, error=str(e))
            return RecommendationSet()

    def record_search(self, query: str) -> None:
        self.telemetry.record_search(query)

    def empty_state(self) -> dict[str, list[dict[str, str]]]:
        return {key: [dict(entry) for entry in entries] for key, entries in EMPTY_STATE.items()}

    def autocomplete(
        self, partial_query: str, user_items: list[Any], limit: int
    ) -> list[Recommendation]:
        lowered = partial_query.strip().lower()
        suggestions: dict[str, None] = {}

        for pattern in QUERY_PATTERNS:
            first_word = pattern.split(" ")[0]
            if pattern.startswith(lowered):
                suggestions.setdefault(pattern)
            elif lowered.startswith(first_word + " "):
                # "what transformers" -> "what is transformers"
                head = pattern if lowered.startswith(pattern + " ") else first_word
                topic = lowered[len(head):].strip()
                if topic:
                    suggestions.setdefault(f"{pattern} {topic}")

        terms: dict[str, None] = {}
        for item in user_items:
            for word in (getattr(item, "title", None) or "").lower().split():
                word = word.strip(".,:;!?\"'()[]")
                if len(word) > 3 and word.startswith(lowered):
                    terms.setdefault(word)
            for tag in getattr(item, "tags", None) or []:
                if tag.lower().startswith(lowered):
                    terms.setdefault(tag.lower())

        for term in terms:
            suggestions.setdefault(term)
            suggestions.setdefault(f"articles about {term}")
            suggestions.setdefault(f"{term} notes")

        return [
            Recommendation(text=text, type="autocomplete", confidence=0.8)
            for text in list(suggestions)[:limit]
        ]

    def related_searches(self, query: str, limit: int) -> list[Recommendation]:
        analysis = self.analyzer.analyze(query)
        keywords = analysis.keywords
        keyword_text = " ".join(keywords)
        related: list[Recommendation] = []

        if analysis.intent == "question" and keywords:
            related.extend(
                [
                    Recommendation(f"how to {keyword_text}", "related", 0.9),
                    Recommendation(f"what is {keywords[0]}", "related", 0.85),
                    Recommendation(f"examples of {keyword_text}", "related", 0.8),
                ]
            )

        if analysis.query_type != "general":
            if keywords:
                related.append(
                    Recommendation(f"{analysis.query_type}s about {keyword_text}", "related", 0.9)
                )
            related.append(Recommendation(f"recent {analysis.query_type}s", "related", 0.7))

        if len(analysis.expansions) > 1:
            normalized_query = query.strip().lower()
            expansions = [e for e in analysis.expansions if e != normalized_query][:3]
            for idx, expansion in enumerate(expansions):
                related.append(
                    Recommendation(expansion, "expansion", round(0.9 - idx * 0.1, 2))
                )

        if len(keywords) > 1:
            for combination in keyword_combinations(keywords)[:2]:
                related.append(Recommendation(combination, "combination", 0.75))

        return related[:limit]

    async def semantic_suggestions(
        self, query: str, user_items: list[Any], limit: int
    ) -> list[Recommendation]:
        """Items similar to the query. Failures yield no suggestions."""
        try:
            query_embedding = await self.embedder.embed(query)

            sampled = []
            for item in user_items[: self.content_sample]:
                text = f"{getattr(item, 'title', None) or ''} {getattr(item, 'description', None) or ''}"
                text = text[:CONTENT_SAMPLE_TEXT_CHARS].strip()
                if preprocess_text(text, self.embedder.max_chars):
                    sampled.append((item, text))

            embeddings = await asyncio.gather(
                *(self.embedder.embed(text) for _, text in sampled)
            )
        except Exception as e:
            logger.warning("Content-based suggestions failed", query=query, error=str(e))
            return []

        scored = [
            (item, cosine_similarity(query_embedding, embedding))
            for (item, _), embedding in zip(sampled, embeddings)
        ]
        scored = [pair for pair in scored if pair[1] > self.similarity_floor]
        scored.sort(key=lambda pair: pair[1], reverse=True)

        suggestions: list[Recommendation] = []
        for item, similarity in scored[:limit]:
            title = (getattr(item, "title", None) or "")[:30]
            suggestions.append(
                Recommendation(
                    text=f'find more like "{title}..."',
                    type="content-based",
                    confidence=similarity,
                    item_id=str(item.id),
                )
            )
            for tag in (getattr(item, "tags", None) or [])[:2]:
                suggestions.append(
                    Recommendation(f"{tag} content", "tag-based", similarity * 0.8)
                )

        return suggestions[:limit]

    def profile_suggestions(self, user_items: list[Any], limit: int) -> list[Recommendation]:
        """Suggestions from the user's tag and content-type distribution."""
        if not user_items:
            return []

        tag_counts: Counter[str] = Counter()
        type_counts: Counter[str] = Counter()
        for item in user_items:
            if getattr(item, "content_type", None):
                type_counts[item.content_type] += 1
            tag_counts.update(getattr(item, "tags", None) or [])

        total = len(user_items)
        suggestions = [
            Recommendation(f"{tag} content", "content-based", min(count / total, 1.0), count=count)
            for tag, count in tag_counts.most_common(5)
        ]
        suggestions.extend(
            Recommendation(f"all {content_type}s", "content-based", min(count / total, 1.0), count=count)
            for content_type, count in type_counts.most_common(3)
        )
        return suggestions[:limit]

    def trending(self, limit: int) -> list[Recommendation]:
        popular = [
            Recommendation(query, "popular", min(count / 10, 1.0))
            for query, count in self.telemetry.popular(3)
        ]
        curated = [
            Recommendation(text, "trending", confidence)
            for text, confidence in CURATED_TRENDING
        ]
        return (popular + curated)[:limit]


def keyword_combinations(keywords: list[str]) -> list[str]:
    """Every keyword pair in both orders."""
    combinations = []
    for i in range(len(keywords) - 1):
        for j in range(i + 1, len(keywords)):
            combinations.append(f"{keywords[i]} {keywords[j]}")
            combinations.append(f"{keywords[j]} {keywords[i]}")
    return combinations
