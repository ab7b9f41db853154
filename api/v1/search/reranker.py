"""
Second-pass re-ranking of similarity candidates.

Each candidate's text is embedded and compared with the query directly, which
is more precise than the index distance alone. Candidates whose content type
matches the query's type hint get a score boost, then weak matches are
dropped.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

from api.config.logging import get_logger
from api.config.settings import Settings
from api.v1.search.embedder import Embedder, cosine_similarity, preprocess_text
from api.v1.search.index import SearchCandidate
from api.v1.search.query_analyzer import QueryAnalysis, QueryAnalyzer

logger = get_logger(__name__)

RELEVANCE_BANDS: tuple[tuple[float, str], ...] = (
    (0.9, "Highly Relevant"),
    (0.8, "Very Relevant"),
    (0.7, "Relevant"),
    (0.6, "Somewhat Relevant"),
)


def relevance_label(score: float) -> str:
    for floor, label in RELEVANCE_BANDS:
        if score >= floor:
            return label
    return "Marginally Relevant"


def comparison_text(item: Any, max_chars: int) -> str:
    parts = [
        getattr(item, "title", None) or "",
        getattr(item, "description", None) or "",
        getattr(item, "content", None) or "",
    ]
    return " ".join(parts)[:max_chars].strip()


@dataclass
class RankedResult:
    """A candidate after re-ranking. Scores are None when ranking fell back."""

    item: Any
    distance: float
    similarity_score: float | None = None
    boosted_score: float | None = None
    relevance_label: str | None = None

    @classmethod
    def unranked(cls, candidate: SearchCandidate) -> "RankedResult":
        return cls(item=candidate.item, distance=candidate.distance)


class Reranker:
    """Re-score candidates against the query with the shared embedder."""

    def __init__(
        self,
        embedder: Embedder,
        settings: Settings,
        analyzer: QueryAnalyzer | None = None,
    ):
        self.embedder = embedder
        self.analyzer = analyzer or QueryAnalyzer()
        self.min_relevance = settings.rerank_min_relevance
        self.type_boost = settings.rerank_type_boost
        self.max_chars = settings.embedding_max_chars

    async def rerank(
        self,
        query: str,
        candidates: list[SearchCandidate],
        top_k: int = 10,
        analysis: QueryAnalysis | None = None,
    ) -> list[RankedResult]:
        """
        Re-rank candidates by direct query/content similarity.

        The threshold applies to the raw similarity while ordering uses the
        boosted score, so a boost can reorder results but never rescue a weak
        match. If anything fails the original candidates come back unranked.
        """
        if not candidates:
            return []

        try:
            analysis = analysis or self.analyzer.analyze(query)
            query_embedding = await self.embedder.embed(query)
            ranked = await asyncio.gather(
                *(
                    self._score(query_embedding, candidate, analysis.query_type)
                    for candidate in candidates
                )
            )
        except Exception as e:
            logger.warning(
                "Re-ranking failed, returning original order",
                query=query,
                candidates=len(candidates),
                error=str(e),
            )
            return [RankedResult.unranked(candidate) for candidate in candidates]

        # list.sort is stable, so equal scores keep index order
        ranked.sort(key=lambda result: result.boosted_score, reverse=True)
        relevant = [r for r in ranked if r.similarity_score >= self.min_relevance]

        logger.debug(
            "Re-ranking complete",
            candidates=len(candidates),
            relevant=len(relevant),
            top_k=top_k,
        )
        return relevant[:top_k]

    async def _score(
        self, query_embedding: list[float], candidate: SearchCandidate, query_type: str
    ) -> RankedResult:
        text = comparison_text(candidate.item, self.max_chars)
        # symbol-only text cleans to nothing and scores 0.0
        if preprocess_text(text, self.max_chars):
            content_embedding = await self.embedder.embed(text)
            score = cosine_similarity(query_embedding, content_embedding)
        else:
            score = 0.0

        boosted = score
        if query_type != "general" and candidate.item.content_type == query_type:
            boosted = score * self.type_boost

        return RankedResult(
            item=candidate.item,
            distance=candidate.distance,
            similarity_score=score,
            boosted_score=boosted,
            relevance_label=relevance_label(score),
        )
