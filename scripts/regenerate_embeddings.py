#!/usr/bin/env python3
"""
Embedding backfill - computes missing embeddings for the configured model.

Items that already have a row for the current model version are left alone
unless --force is given. Rows of other model versions are never touched.

Usage:
    python scripts/regenerate_embeddings.py [--owner UUID] [--batch-size N] [--force]
"""

import argparse
import asyncio
import uuid

from api.config.logging import setup_logging
from api.config.settings import settings
from api.infra.database import Database
from api.v1.search.embedder import Embedder
from api.v1.search.embedding_service import EmbeddingService
from api.v1.search.registry_init import init_vectorizer_registry


async def regenerate_embeddings(
    owner_id: uuid.UUID | None, batch_size: int, force: bool
) -> dict[str, int]:
    """Run the backfill and print a summary."""
    setup_logging()
    init_vectorizer_registry(settings)

    database = Database(settings)
    embedder = Embedder(settings)
    service = EmbeddingService(embedder, settings)

    print(f"🔄 Regenerating embeddings with {embedder.model_version}...")

    try:
        async with database.SessionLocal() as session:
            stats = await service.regenerate_missing(
                session, owner_id=owner_id, batch_size=batch_size, force_recompute=force
            )
            coverage = await service.get_embedding_stats(session, owner_id)
    finally:
        await database.close()

    print("\n📊 Summary:")
    print(f"   • Processed: {stats['processed']}")
    print(f"   • Created:   {stats['created']}")
    print(f"   • Updated:   {stats['updated']}")
    print(f"   • Skipped:   {stats['skipped']} (no text)")
    print(f"   • Errors:    {stats['errors']}")
    print(
        f"   • Coverage:  {coverage['items_with_embeddings']}/{coverage['total_items']}"
        f" ({coverage['coverage_rate']:.0%})"
    )
    return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Backfill item embeddings")
    parser.add_argument("--owner", type=uuid.UUID, default=None, help="Only this owner's items")
    parser.add_argument("--batch-size", type=int, default=100, help="Items per batch")
    parser.add_argument("--force", action="store_true", help="Recompute existing embeddings")
    args = parser.parse_args()

    stats = asyncio.run(regenerate_embeddings(args.owner, args.batch_size, args.force))
    if stats["errors"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
