from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.items.schemas import ItemResponse
from api.v1.search.filters import SearchFilters


class SearchRequest(BaseModel):
    """Schema for a semantic search request."""

    query: str = Field(..., description="Natural language query")
    filters: SearchFilters | None = Field(
        default=None, description="Structured filters; override ones parsed from the query"
    )
    limit: int | None = Field(default=None, ge=1, le=100, description="Maximum results")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "query": "black shoes under $300",
                "filters": {"isFavorite": True},
                "limit": 10,
            }
        }
    )

    @field_validator("query")
    @classmethod
    def strip_query(cls, v):
        return v.strip()


class SearchResult(ItemResponse):
    """An item with its scores."""

    distance: float
    similarity_score: float | None = None
    boosted_score: float | None = None
    relevance_label: str | None = None


class SemanticAnalysis(BaseModel):
    intent: str
    query_type: str
    keywords: list[str]
    expansions: list[str]


class SearchPerformance(BaseModel):
    initial_results: int
    reranked_results: int
    top_relevance: float | None = None


class SearchResponse(BaseModel):
    """Schema for search responses."""

    query: str
    search_text: str
    results: list[SearchResult]
    semantic_analysis: SemanticAnalysis
    filters: dict[str, Any]
    recommendations: dict[str, list[dict[str, Any]]] | None = None
    message: str | None = None
    performance: SearchPerformance


class PopularTag(BaseModel):
    tag: str
    count: int


class SuggestionsResponse(BaseModel):
    """Autocomplete payload; ``empty_state`` is set when the owner has nothing saved."""

    query: str
    recommendations: dict[str, list[dict[str, Any]]] | None = None
    empty_state: dict[str, list[dict[str, str]]] | None = None
    popular_tags: list[PopularTag] = Field(default_factory=list)
    has_content: bool
    total_items: int


class SimilarItemsResponse(BaseModel):
    source_item_id: UUID
    similar_items: list[SearchResult]
    count: int


class ChatContextRequest(BaseModel):
    """Schema for retrieval-augmented context requests."""

    message: str = Field(..., description="User chat message")
    limit: int = Field(default=5, ge=1, le=20, description="Items to include")

    @field_validator("message")
    @classmethod
    def strip_message(cls, v):
        return v.strip()


class ContextSource(BaseModel):
    id: UUID
    title: str | None
    content_type: str
    similarity_score: float | None = None
    relevance_label: str | None = None


class ChatContextResponse(BaseModel):
    context: str
    sources: list[ContextSource]
    total_items: int
    semantic_analysis: SemanticAnalysis
