"""
Embedding computation service.

Generates and stores item embeddings for the configured model, backfills
missing ones and reports coverage.
"""

import asyncio
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.config.logging import get_logger
from api.config.settings import Settings
from api.infra.database import store_guard
from api.v1.core.exceptions import EmbeddingServiceError, InvalidInputError
from api.v1.items.models import Item
from api.v1.items.utils import embedding_text
from api.v1.search.embedder import Embedder, preprocess_text
from api.v1.search.models import ItemEmbedding

logger = get_logger(__name__)


class EmbeddingService:
    """
    Service for computing and managing item embeddings.

    One row per (item, model version). Computing an embedding overwrites
    the row of the current model and never touches rows of other models.
    """

    def __init__(self, embedder: Embedder, settings: Settings):
        self.embedder = embedder
        self.settings = settings

    async def compute_embedding_for_item(
        self, session: AsyncSession, item: Item, force_recompute: bool = False
    ) -> ItemEmbedding | None:
        """
        Compute and store the embedding of one item for the current model.

        Args:
            session: Database session
            item: Item to process
            force_recompute: Recompute even when a current embedding exists

        Returns:
            The stored ItemEmbedding, or None when the item has no text
        """
        model_version = self.embedder.model_version

        async with store_guard("load_embedding"):
            existing = await session.execute(
                select(ItemEmbedding).where(
                    ItemEmbedding.item_id == item.id,
                    ItemEmbedding.model_version == model_version,
                )
            )
            existing_embedding = existing.scalar_one_or_none()

        if existing_embedding and not force_recompute:
            return existing_embedding

        item_text = embedding_text(item)
        if not preprocess_text(item_text, self.embedder.max_chars):
            if existing_embedding:
                # text was cleared; a stale vector would keep matching
                async with store_guard("delete_embedding"):
                    await session.delete(existing_embedding)
                    await session.commit()
            logger.info("Skipping item without text", item_id=str(item.id))
            return None

        vector = await self.embedder.embed(item_text)
        meta = {"text_length": len(item_text), "content_type": item.content_type}

        if existing_embedding:
            existing_embedding.embedding = vector
            existing_embedding.meta = {**meta, "recomputed": True}
            embedding = existing_embedding
        else:
            embedding = ItemEmbedding(
                item_id=item.id,
                embedding=vector,
                model_version=model_version,
                meta=meta,
            )
            session.add(embedding)

        async with store_guard("save_embedding"):
            await session.commit()
            await session.refresh(embedding)

        logger.debug(
            "Stored item embedding",
            item_id=str(item.id),
            model_version=model_version,
            dimension=len(vector),
        )
        return embedding

    async def regenerate_missing(
        self,
        session: AsyncSession,
        owner_id: UUID | None = None,
        batch_size: int = 100,
        force_recompute: bool = False,
    ) -> dict[str, int]:
        """
        Backfill embeddings for items that have none under the current model.

        Per-item embedding failures are logged and counted; the run continues.
        A store failure aborts the run.

        Returns:
            Counts of processed, created, updated, skipped and errored items
        """
        stats = {"processed": 0, "created": 0, "updated": 0, "skipped": 0, "errors": 0}
        model_version = self.embedder.model_version

        base_query = select(Item).order_by(Item.created_at, Item.id)
        if owner_id:
            base_query = base_query.where(Item.user_id == owner_id)
        if not force_recompute:
            base_query = base_query.outerjoin(
                ItemEmbedding,
                and_(
                    ItemEmbedding.item_id == Item.id,
                    ItemEmbedding.model_version == model_version,
                ),
            ).where(ItemEmbedding.id.is_(None))

        logger.info(
            "Regenerating embeddings",
            model_version=model_version,
            owner_id=str(owner_id) if owner_id else None,
            force=force_recompute,
        )

        # Without force the processed rows drop out of the query, so the
        # window only advances past rows that were skipped or failed
        offset = 0
        while True:
            async with store_guard("list_items_for_embedding"):
                result = await session.execute(base_query.offset(offset).limit(batch_size))
                items = list(result.scalars().all())

            if not items:
                break

            for item in items:
                stats["processed"] += 1
                try:
                    had_embedding = force_recompute and await self._has_embedding(
                        session, item.id, model_version
                    )
                    embedding = await self.compute_embedding_for_item(
                        session, item, force_recompute
                    )
                except (EmbeddingServiceError, InvalidInputError) as e:
                    stats["errors"] += 1
                    logger.error(
                        "Error computing embedding", item_id=str(item.id), error=str(e)
                    )
                    if not force_recompute:
                        offset += 1
                    continue

                if embedding is None:
                    stats["skipped"] += 1
                    if not force_recompute:
                        offset += 1
                elif had_embedding:
                    stats["updated"] += 1
                else:
                    stats["created"] += 1

            if force_recompute:
                offset += batch_size

            # Brief pause to avoid overwhelming the embedding backend
            await asyncio.sleep(0.1)

        logger.info("Embedding regeneration complete", **stats)
        return stats

    async def _has_embedding(
        self, session: AsyncSession, item_id: UUID, model_version: str
    ) -> bool:
        count = await session.scalar(
            select(func.count(ItemEmbedding.id)).where(
                ItemEmbedding.item_id == item_id,
                ItemEmbedding.model_version == model_version,
            )
        )
        return bool(count)

    async def get_embedding_stats(
        self, session: AsyncSession, owner_id: UUID | None = None
    ) -> dict[str, Any]:
        """
        Coverage of the current model over an owner's items.

        Returns:
            Total items, items embedded under the current model, coverage rate,
            per-model breakdown and the number still missing
        """
        model_version = self.embedder.model_version

        items_query = select(func.count(Item.id))
        current_query = select(func.count(ItemEmbedding.id)).where(
            ItemEmbedding.model_version == model_version
        )
        versions_query = select(
            ItemEmbedding.model_version,
            func.count(ItemEmbedding.id).label("count"),
        ).group_by(ItemEmbedding.model_version)

        if owner_id:
            items_query = items_query.where(Item.user_id == owner_id)
            current_query = current_query.join(Item).where(Item.user_id == owner_id)
            versions_query = versions_query.join(Item).where(Item.user_id == owner_id)

        async with store_guard("embedding_stats"):
            total_items = await session.scalar(items_query) or 0
            with_current = await session.scalar(current_query) or 0
            versions = await session.execute(versions_query)
            version_breakdown = {row[0]: row[1] for row in versions.all()}

        return {
            "total_items": total_items,
            "items_with_embeddings": with_current,
            "coverage_rate": round(with_current / total_items, 4) if total_items else 0.0,
            "current_model_version": model_version,
            "model_versions": version_breakdown,
            "missing_embeddings": max(total_items - with_current, 0),
        }
