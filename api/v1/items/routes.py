from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.config.logging import get_logger
from api.infra.database import SessionDep, store_guard
from api.v1.core.exceptions import EmbeddingServiceError, InvalidInputError, NotFoundError
from api.v1.core.security import Principal, PrincipalDep
from api.v1.items.metadata import dump_metadata
from api.v1.items.models import Item, User
from api.v1.items.schemas import (
    ItemCreate,
    ItemFilters,
    ItemList,
    ItemResponse,
    ItemUpdate,
)
from api.v1.items.utils import source_domain
from api.v1.search.dependencies import EmbeddingServiceDep
from api.v1.search.embedding_service import EmbeddingService

logger = get_logger(__name__)

router = APIRouter()


async def ensure_owner_exists(session: AsyncSession, principal: Principal):
    """Create the owner's user row on first write."""
    user_uuid = principal.user_uuid

    async with store_guard("ensure_owner"):
        result = await session.execute(select(User).where(User.id == user_uuid))
        user = result.scalar_one_or_none()

        if not user:
            email = principal.email or f"{principal.user_id}@synapse.local"
            session.add(User(id=user_uuid, email=email, name=principal.user_id))
            await session.commit()


async def get_item_by_id(
    item_id: UUID,
    principal: Principal,
    session: AsyncSession,
) -> Item:
    """Get an item by ID, ensuring it belongs to the caller."""
    async with store_guard("get_item"):
        result = await session.execute(
            select(Item).where(
                and_(Item.id == item_id, Item.user_id == principal.user_uuid)
            )
        )
        item = result.scalar_one_or_none()

    if not item:
        raise NotFoundError("Item not found", details={"item_id": str(item_id)})

    return item


async def _embed_after_write(
    embedding_service: EmbeddingService,
    session: AsyncSession,
    item: Item,
    force: bool,
) -> None:
    # The item is already saved; a failed embedding is picked up by the backfill
    try:
        await embedding_service.compute_embedding_for_item(session, item, force_recompute=force)
    except (EmbeddingServiceError, InvalidInputError) as e:
        logger.warning(
            "Embedding deferred after item write",
            item_id=str(item.id),
            error=e.message,
            transient=getattr(e, "transient", False),
        )


@router.post("/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
    embedding_service: EmbeddingService = EmbeddingServiceDep,
):
    """Save a new item and index it."""
    await ensure_owner_exists(session, principal)

    item = Item(
        user_id=principal.user_uuid,
        title=item_data.title,
        description=item_data.description,
        content=item_data.content,
        content_type=item_data.content_type,
        url=item_data.url,
        source_domain=source_domain(item_data.url),
        meta=item_data.metadata or {},
        tags=item_data.tags or [],
        collection_id=item_data.collection_id,
        is_favorite=item_data.is_favorite,
    )

    async with store_guard("create_item"):
        session.add(item)
        await session.commit()
        await session.refresh(item)

    logger.info("Item saved", item_id=str(item.id), content_type=item.content_type)

    await _embed_after_write(embedding_service, session, item, force=False)

    return ItemResponse.model_validate(item)


@router.get("/items", response_model=ItemList)
async def list_items(
    filters: Annotated[ItemFilters, Query()],
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
):
    """List the caller's items, newest first."""
    conditions = [Item.user_id == principal.user_uuid]
    if filters.content_type:
        conditions.append(Item.content_type == filters.content_type)
    if filters.tags:
        conditions.append(Item.tags.overlap(filters.tags))
    if filters.is_favorite is not None:
        conditions.append(Item.is_favorite.is_(filters.is_favorite))
    if not filters.include_archived:
        conditions.append(Item.is_archived.is_(False))

    async with store_guard("list_items"):
        total = await session.scalar(select(func.count(Item.id)).where(*conditions)) or 0
        result = await session.execute(
            select(Item)
            .where(*conditions)
            .order_by(Item.created_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        items = list(result.scalars().all())

    return ItemList(
        items=[ItemResponse.model_validate(item) for item in items],
        total=total,
        offset=filters.offset,
        limit=filters.limit,
        has_more=filters.offset + len(items) < total,
    )


# Declared before /items/{item_id} so the literal path wins
@router.get("/items/embedding-stats", response_model=dict[str, Any])
async def get_embedding_stats(
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
    embedding_service: EmbeddingService = EmbeddingServiceDep,
):
    """Embedding coverage of the caller's items under the current model."""
    return await embedding_service.get_embedding_stats(session, principal.user_uuid)


@router.get("/items/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: UUID,
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
):
    """Get a specific item by ID."""
    item = await get_item_by_id(item_id, principal, session)
    return ItemResponse.model_validate(item)


@router.patch("/items/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    update_data: ItemUpdate,
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
    embedding_service: EmbeddingService = EmbeddingServiceDep,
):
    """Update an existing item; text changes re-embed it."""
    item = await get_item_by_id(item_id, principal, session)

    changes = update_data.model_dump(exclude_unset=True)
    if "metadata" in changes:
        item.meta = dump_metadata(item.content_type, changes.pop("metadata"))
    for field_name, value in changes.items():
        if value is not None or field_name in ("title", "description", "content", "collection_id"):
            setattr(item, field_name, value)

    async with store_guard("update_item"):
        await session.commit()
        await session.refresh(item)

    if update_data.touches_text():
        await _embed_after_write(embedding_service, session, item, force=True)

    return ItemResponse.model_validate(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID,
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
):
    """Delete an item and, by cascade, its embeddings."""
    item = await get_item_by_id(item_id, principal, session)

    async with store_guard("delete_item"):
        await session.delete(item)
        await session.commit()


@router.post("/items/{item_id}/compute-embedding", response_model=dict[str, Any])
async def compute_item_embedding(
    item_id: UUID,
    force: bool = False,
    principal: Principal = PrincipalDep,
    session: AsyncSession = SessionDep,
    embedding_service: EmbeddingService = EmbeddingServiceDep,
):
    """Manually compute the embedding of one item."""
    item = await get_item_by_id(item_id, principal, session)

    embedding = await embedding_service.compute_embedding_for_item(
        session, item, force_recompute=force
    )
    if embedding is None:
        return {"item_id": str(item.id), "skipped": True, "reason": "Item has no text"}

    return {
        "item_id": str(embedding.item_id),
        "model_version": embedding.model_version,
        "embedding_dimension": len(embedding.embedding),
        "created_at": embedding.created_at.isoformat(),
        "metadata": embedding.meta,
    }
