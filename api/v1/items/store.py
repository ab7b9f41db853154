"""
Owner-scoped read helpers over items.

Used by search for zero-result recommendations, suggestions and chat
context counts. All queries translate connection failures into
StoreUnavailableError.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.infra.database import store_guard
from api.v1.items.models import Item


class ItemStore:
    """Content store queries the search pipeline depends on."""

    async def get(self, session: AsyncSession, owner_id: UUID, item_id: UUID) -> Item | None:
        stmt = select(Item).where(Item.id == item_id, Item.user_id == owner_id)
        async with store_guard("get_item"):
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_recent(
        self, session: AsyncSession, owner_id: UUID, limit: int = 100
    ) -> list[Item]:
        """Most recently created non-archived items."""
        stmt = (
            select(Item)
            .where(Item.user_id == owner_id, Item.is_archived.is_(False))
            .order_by(Item.created_at.desc())
            .limit(limit)
        )
        async with store_guard("list_items"):
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(self, session: AsyncSession, owner_id: UUID) -> int:
        stmt = select(func.count(Item.id)).where(
            Item.user_id == owner_id, Item.is_archived.is_(False)
        )
        async with store_guard("count_items"):
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def popular_tags(
        self, session: AsyncSession, owner_id: UUID, limit: int = 10
    ) -> list[tuple[str, int]]:
        """Most used tags with their counts, most frequent first."""
        tag = func.unnest(Item.tags).label("tag")
        subquery = (
            select(tag)
            .where(Item.user_id == owner_id, Item.is_archived.is_(False))
            .subquery()
        )
        count = func.count().label("count")
        stmt = (
            select(subquery.c.tag, count)
            .group_by(subquery.c.tag)
            .order_by(count.desc(), subquery.c.tag)
            .limit(limit)
        )
        async with store_guard("popular_tags"):
            result = await session.execute(stmt)
            return [(row.tag, row.count) for row in result.all()]
