"""
Application-scoped search components and their FastAPI dependencies.

The components are built once at startup and held on ``app.state`` so the
embedding cache and search telemetry are shared across requests. Tests
replace them by assigning ``app.state.components``.
"""

from dataclasses import dataclass

from fastapi import Depends, Request

from api.config.settings import Settings
from api.v1.core.registries import QueryParser, query_parser_registry
from api.v1.items.store import ItemStore
from api.v1.search.embedder import Embedder
from api.v1.search.embedding_service import EmbeddingService
from api.v1.search.index import SimilarityIndex
from api.v1.search.query_analyzer import QueryAnalyzer
from api.v1.search.recommendations import RecommendationEngine, RecommendationTelemetry
from api.v1.search.reranker import Reranker
from api.v1.search.service import SearchService


@dataclass
class SearchComponents:
    settings: Settings
    embedder: Embedder
    analyzer: QueryAnalyzer
    parser: QueryParser
    reranker: Reranker
    telemetry: RecommendationTelemetry
    recommender: RecommendationEngine
    index: SimilarityIndex
    store: ItemStore


def build_components(
    settings: Settings,
    embedder: Embedder | None = None,
    parser: QueryParser | None = None,
    index: SimilarityIndex | None = None,
    store: ItemStore | None = None,
) -> SearchComponents:
    embedder = embedder or Embedder(settings)
    analyzer = QueryAnalyzer()
    telemetry = RecommendationTelemetry(settings.recommendation_history_size)
    return SearchComponents(
        settings=settings,
        embedder=embedder,
        analyzer=analyzer,
        parser=parser or query_parser_registry.get("heuristic"),
        reranker=Reranker(embedder, settings, analyzer),
        telemetry=telemetry,
        recommender=RecommendationEngine(embedder, telemetry, settings, analyzer),
        index=index or SimilarityIndex(),
        store=store or ItemStore(),
    )


def get_components(request: Request) -> SearchComponents:
    return request.app.state.components


def get_search_service(
    components: SearchComponents = Depends(get_components),
) -> SearchService:
    return SearchService(
        settings=components.settings,
        embedder=components.embedder,
        analyzer=components.analyzer,
        parser=components.parser,
        reranker=components.reranker,
        recommender=components.recommender,
        index=components.index,
        store=components.store,
    )


def get_embedding_service(
    components: SearchComponents = Depends(get_components),
) -> EmbeddingService:
    return EmbeddingService(components.embedder, components.settings)


# Convenience aliases for dependency injection
ComponentsDep = Depends(get_components)
SearchServiceDep = Depends(get_search_service)
EmbeddingServiceDep = Depends(get_embedding_service)
