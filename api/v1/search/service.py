"""
Semantic search orchestration.

query -> analysis + filter extraction -> embedding -> similarity index ->
re-ranking -> recommendations when nothing qualifies.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.config.logging import get_logger
from api.config.settings import Settings
from api.v1.core.exceptions import InvalidInputError, NotFoundError
from api.v1.core.registries import QueryParser
from api.v1.items.schemas import ItemResponse
from api.v1.items.store import ItemStore
from api.v1.search.context import build_context
from api.v1.search.embedder import Embedder
from api.v1.search.filters import SearchFilters
from api.v1.search.index import SimilarityIndex
from api.v1.search.query_analyzer import QueryAnalysis, QueryAnalyzer
from api.v1.search.recommendations import RecommendationEngine
from api.v1.search.reranker import RankedResult, Reranker
from api.v1.search.schemas import (
    ChatContextResponse,
    ContextSource,
    PopularTag,
    SearchPerformance,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SemanticAnalysis,
    SimilarItemsResponse,
    SuggestionsResponse,
)

logger = get_logger(__name__)

NO_RESULTS_MESSAGE = "No results found. Try the suggestions below or save some content first!"


def to_search_result(ranked: RankedResult) -> SearchResult:
    item = ItemResponse.model_validate(ranked.item).model_dump()
    return SearchResult(
        **item,
        distance=ranked.distance,
        similarity_score=ranked.similarity_score,
        boosted_score=ranked.boosted_score,
        relevance_label=ranked.relevance_label,
    )


def to_semantic_analysis(analysis: QueryAnalysis) -> SemanticAnalysis:
    return SemanticAnalysis(**analysis.to_dict())


class SearchService:
    """Runs searches, suggestions, similar-item lookups and chat retrieval."""

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder,
        analyzer: QueryAnalyzer,
        parser: QueryParser,
        reranker: Reranker,
        recommender: RecommendationEngine,
        index: SimilarityIndex | None = None,
        store: ItemStore | None = None,
    ):
        self.settings = settings
        self.embedder = embedder
        self.analyzer = analyzer
        self.parser = parser
        self.reranker = reranker
        self.recommender = recommender
        self.index = index or SimilarityIndex()
        self.store = store or ItemStore()

    async def search(
        self, session: AsyncSession, owner_id: UUID, request: SearchRequest
    ) -> SearchResponse:
        query = request.query.strip() if isinstance(request.query, str) else ""
        if not query:
            raise InvalidInputError("Query is required")

        analysis = self.analyzer.analyze(query)
        parsed = self.parser.parse(query)
        filters = parsed.filters.merged_with(request.filters)
        limit = request.limit or self.settings.search_default_limit

        logger.info(
            "Processing search",
            query=query,
            search_text=parsed.search_text,
            intent=analysis.intent,
            query_type=analysis.query_type,
            filters=filters.to_dict(),
        )

        query_embedding = await self.embedder.embed(parsed.search_text)

        candidates = await self.index.search(
            session,
            owner_id,
            query_embedding,
            model_version=self.embedder.model_version,
            filters=filters,
            limit=limit * self.settings.search_candidate_multiplier,
        )

        ranked = await self.reranker.rerank(query, candidates, top_k=limit, analysis=analysis)
        ranked = ranked[:limit]

        recommendations = None
        message = None
        if not ranked:
            user_items = await self.store.list_recent(
                session, owner_id, limit=self.settings.recommendation_item_pool
            )
            recommendation_set = await self.recommender.recommend(query, user_items, limit=10)
            recommendations = recommendation_set.to_dict()
            self.recommender.record_search(query)
            message = NO_RESULTS_MESSAGE

        logger.info(
            "Search complete",
            query=query,
            initial_results=len(candidates),
            reranked_results=len(ranked),
        )

        return SearchResponse(
            query=query,
            search_text=parsed.search_text,
            results=[to_search_result(r) for r in ranked],
            semantic_analysis=to_semantic_analysis(analysis),
            filters=filters.to_dict(),
            recommendations=recommendations,
            message=message,
            performance=SearchPerformance(
                initial_results=len(candidates),
                reranked_results=len(ranked),
                top_relevance=ranked[0].similarity_score if ranked else None,
            ),
        )

    async def suggest(
        self, session: AsyncSession, owner_id: UUID, query: str | None = None
    ) -> SuggestionsResponse:
        query = (query or "").strip()
        user_items = await self.store.list_recent(
            session, owner_id, limit=self.settings.recommendation_item_pool
        )

        if not query and not user_items:
            return SuggestionsResponse(
                query="",
                empty_state=self.recommender.empty_state(),
                has_content=False,
                total_items=0,
            )

        recommendations = await self.recommender.recommend(query, user_items, limit=10)
        popular_tags = await self.store.popular_tags(session, owner_id, limit=10)

        return SuggestionsResponse(
            query=query,
            recommendations=recommendations.to_dict(),
            popular_tags=[PopularTag(tag=tag, count=count) for tag, count in popular_tags],
            has_content=bool(user_items),
            total_items=len(user_items),
        )

    async def find_similar(
        self, session: AsyncSession, owner_id: UUID, item_id: UUID, limit: int = 10
    ) -> SimilarItemsResponse:
        """Nearest items of the same content type, using the stored embedding."""
        item = await self.store.get(session, owner_id, item_id)
        if item is None:
            raise NotFoundError("Item not found", details={"item_id": str(item_id)})

        embedding = await self.index.get_item_embedding(
            session, item_id, self.embedder.model_version
        )
        if embedding is None:
            raise NotFoundError(
                "Item has no embedding for the current model",
                details={"item_id": str(item_id), "model_version": self.embedder.model_version},
            )

        candidates = await self.index.search(
            session,
            owner_id,
            embedding,
            model_version=self.embedder.model_version,
            filters=SearchFilters(content_type=item.content_type),
            limit=limit,
            exclude_item_id=item_id,
        )
        results = [
            to_search_result(
                RankedResult(
                    item=c.item,
                    distance=c.distance,
                    similarity_score=c.similarity,
                )
            )
            for c in candidates
        ]
        return SimilarItemsResponse(source_item_id=item_id, similar_items=results, count=len(results))

    async def retrieve_context(
        self, session: AsyncSession, owner_id: UUID, message: str, limit: int = 5
    ) -> ChatContextResponse:
        """Retrieve the items most relevant to a chat message and render them."""
        message = message.strip() if isinstance(message, str) else ""
        if not message:
            raise InvalidInputError("Message is required")

        analysis = self.analyzer.analyze(message)
        query_embedding = await self.embedder.embed(message)

        candidates = await self.index.search(
            session,
            owner_id,
            query_embedding,
            model_version=self.embedder.model_version,
            limit=limit * 2,
        )
        ranked = (await self.reranker.rerank(message, candidates, top_k=limit, analysis=analysis))[:limit]
        total_items = await self.store.count(session, owner_id)

        items = [r.item for r in ranked]
        context = build_context(items, total_items, self.settings.context_excerpt_chars)

        logger.info(
            "Chat context retrieved",
            candidates=len(candidates),
            included=len(items),
            total_items=total_items,
        )

        return ChatContextResponse(
            context=context,
            sources=[_context_source(r) for r in ranked],
            total_items=total_items,
            semantic_analysis=to_semantic_analysis(analysis),
        )


def _context_source(ranked: RankedResult) -> ContextSource:
    item: Any = ranked.item
    return ContextSource(
        id=item.id,
        title=item.title,
        content_type=item.content_type,
        similarity_score=ranked.similarity_score,
        relevance_label=ranked.relevance_label,
    )
