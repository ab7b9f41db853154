"""
Search API routes - semantic search, suggestions, similar items and chat context.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.infra.database import get_session
from api.v1.core.exceptions import create_success_response
from api.v1.core.security import Principal, get_principal
from api.v1.search.dependencies import SearchServiceDep
from api.v1.search.schemas import ChatContextRequest, SearchRequest
from api.v1.search.service import SearchService

router = APIRouter(prefix="/search", tags=["search"])
chat_router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=dict)
async def search(
    request: SearchRequest,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
    service: SearchService = SearchServiceDep,
):
    """Semantic search over the caller's saved items."""
    response = await service.search(db, principal.user_uuid, request)
    return create_success_response(
        response.model_dump(mode="json"), message=response.message
    )


@router.get("/suggestions", response_model=dict)
async def suggestions(
    q: str | None = Query(default=None, description="Partial query"),
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
    service: SearchService = SearchServiceDep,
):
    """Autocomplete and related suggestions for a partial query."""
    response = await service.suggest(db, principal.user_uuid, q)
    return create_success_response(response.model_dump(mode="json"))


@router.get("/similar/{item_id}", response_model=dict)
async def similar_items(
    item_id: UUID,
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
    service: SearchService = SearchServiceDep,
):
    """Items of the same type closest to the given item."""
    response = await service.find_similar(db, principal.user_uuid, item_id, limit)
    return create_success_response(response.model_dump(mode="json"))


@chat_router.post("/context", response_model=dict)
async def chat_context(
    request: ChatContextRequest,
    db: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
    service: SearchService = SearchServiceDep,
):
    """Retrieval-augmented context block for a chat message."""
    response = await service.retrieve_context(
        db, principal.user_uuid, request.message, request.limit
    )
    return create_success_response(response.model_dump(mode="json"))
