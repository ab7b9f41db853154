"""
Similarity index over stored item embeddings.

Nearest-neighbour search by cosine distance using pgvector, restricted to one
owner, the active filters and a single embedding model version.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.config.logging import get_logger
from api.infra.database import store_guard
from api.v1.items.models import Item
from api.v1.search.filters import SearchFilters, build_filter_conditions
from api.v1.search.models import ItemEmbedding

logger = get_logger(__name__)


@dataclass
class SearchCandidate:
    """An item returned by the index with its cosine distance to the query."""

    item: Item
    distance: float

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


class SimilarityIndex:
    """pgvector-backed nearest-neighbour search."""

    async def search(
        self,
        session: AsyncSession,
        owner_id: UUID,
        embedding: list[float],
        model_version: str,
        filters: SearchFilters | None = None,
        limit: int = 20,
        exclude_item_id: UUID | None = None,
    ) -> list[SearchCandidate]:
        """
        Find the items closest to ``embedding``.

        Args:
            session: Database session
            owner_id: Only this owner's items are considered
            embedding: Query vector, produced by ``model_version``
            model_version: Embeddings from other models are ignored
            filters: Structured filters, ANDed together
            limit: Maximum number of candidates
            exclude_item_id: Item to leave out (used for "more like this")

        Returns:
            Candidates ordered by ascending distance, newest first on ties
        """
        distance = ItemEmbedding.embedding.cosine_distance(embedding).label("distance")
        conditions = build_filter_conditions(owner_id, filters)
        if exclude_item_id is not None:
            conditions.append(Item.id != exclude_item_id)

        stmt = (
            select(Item, distance)
            .join(
                ItemEmbedding,
                and_(
                    ItemEmbedding.item_id == Item.id,
                    ItemEmbedding.model_version == model_version,
                ),
            )
            .where(*conditions)
            .order_by(distance, Item.created_at.desc())
            .limit(limit)
        )

        async with store_guard("similarity_search"):
            result = await session.execute(stmt)
            rows = result.all()

        logger.debug(
            "Similarity search complete",
            owner_id=str(owner_id),
            model_version=model_version,
            candidates=len(rows),
        )
        return [SearchCandidate(item=row[0], distance=float(row[1])) for row in rows]

    async def get_item_embedding(
        self,
        session: AsyncSession,
        item_id: UUID,
        model_version: str,
    ) -> list[float] | None:
        """Stored vector for an item under one model, if any."""
        stmt = select(ItemEmbedding.embedding).where(
            ItemEmbedding.item_id == item_id,
            ItemEmbedding.model_version == model_version,
        )
        async with store_guard("get_item_embedding"):
            result = await session.execute(stmt)
            embedding = result.scalar_one_or_none()
        return list(embedding) if embedding is not None else None
