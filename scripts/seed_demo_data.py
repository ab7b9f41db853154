#!/usr/bin/env python3
"""
Demo Data Seeder - Populates the knowledge base with sample content

This script creates:
- The default (anonymous) owner used when AUTH_MODE=none
- A mix of articles, products, videos, images and notes with tags and metadata
- Embeddings for every seeded item under the configured model
"""

import asyncio

from sqlalchemy import select

from api.config.logging import setup_logging
from api.config.settings import settings
from api.infra.database import Database
from api.v1.core.security import string_to_uuid
from api.v1.items.metadata import dump_metadata
from api.v1.items.models import Item, User
from api.v1.search.embedder import Embedder
from api.v1.search.embedding_service import EmbeddingService
from api.v1.search.registry_init import init_vectorizer_registry

DEMO_ITEMS = [
    {
        "content_type": "article",
        "title": "Attention Is All You Need: the transformer architecture",
        "description": "How self-attention replaced recurrence in sequence models.",
        "content": "The transformer architecture relies entirely on attention. "
        "Encoder and decoder stacks use multi-head self-attention and feed-forward layers.",
        "url": "https://arxiv.org/abs/1706.03762",
        "tags": ["ai", "transformer", "research"],
        "metadata": {"author": "Vaswani", "site_name": "arXiv"},
    },
    {
        "content_type": "article",
        "title": "Scaling transformer models in production",
        "description": "Serving large transformer models with batching and caching.",
        "content": "Latency budgets for transformer inference depend on batching, "
        "quantization and KV caching.",
        "tags": ["ai", "transformer", "infrastructure"],
        "metadata": {"author": "Jane Doe"},
    },
    {
        "content_type": "product",
        "title": "Black leather running shoes",
        "description": "Lightweight black shoes with a cushioned sole.",
        "url": "https://shop.example.com/shoes/black-runner",
        "tags": ["shoes", "running"],
        "metadata": {"price": "$249.99", "currency": "USD", "brand": "Stride"},
    },
    {
        "content_type": "product",
        "title": "White canvas sneakers",
        "description": "Classic white sneakers for everyday wear.",
        "tags": ["shoes"],
        "metadata": {"price": 89, "currency": "USD", "brand": "Canvasco"},
    },
    {
        "content_type": "video",
        "title": "Argon Database Internals walkthrough",
        "description": "A tour of storage engines, write-ahead logs and B-trees.",
        "url": "https://www.youtube.com/watch?v=argon-db",
        "tags": ["architecture", "databases"],
        "metadata": {"channel": "Systems Weekly", "duration_seconds": 1860},
    },
    {
        "content_type": "image",
        "title": "Desk setup",
        "description": "Photo of a black desk with a gray monitor.",
        "tags": ["workspace"],
        "metadata": {
            "dominant_colors": ["black", "gray"],
            "objects": [
                {"name": "desk", "colors": ["black"]},
                {"name": "monitor", "colors": ["gray"]},
            ],
        },
    },
    {
        "content_type": "note",
        "title": "Ideas for the reading list",
        "content": "Read more about vector databases, cosine similarity and re-ranking.",
        "tags": ["reading", "ideas"],
    },
]


async def seed_demo_data():
    """Seed the default owner's knowledge base with demo items."""
    setup_logging()
    init_vectorizer_registry(settings)

    database = Database(settings)
    embedding_service = EmbeddingService(Embedder(settings), settings)
    owner_id = string_to_uuid(settings.dev_user_id)

    async with database.SessionLocal() as db:
        try:
            existing_user = await db.get(User, owner_id)
            if not existing_user:
                db.add(
                    User(
                        id=owner_id,
                        email=f"{settings.dev_user_id}@synapse.local",
                        name=settings.dev_user_id,
                    )
                )
                await db.flush()
                print("✅ Created default owner")
            else:
                print("ℹ️ Default owner already exists")

            existing_items = await db.execute(
                select(Item).where(Item.user_id == owner_id).limit(1)
            )
            if existing_items.scalar_one_or_none():
                print("ℹ️ Demo items already exist, skipping creation")
                await db.commit()
                return

            created_items = []
            for data in DEMO_ITEMS:
                item = Item(
                    user_id=owner_id,
                    content_type=data["content_type"],
                    title=data.get("title"),
                    description=data.get("description"),
                    content=data.get("content"),
                    url=data.get("url"),
                    tags=data.get("tags", []),
                    meta=dump_metadata(data["content_type"], data.get("metadata")),
                )
                db.add(item)
                created_items.append(item)

            await db.commit()
            print(f"✅ Created {len(created_items)} demo items")

            embedded = 0
            for item in created_items:
                if await embedding_service.compute_embedding_for_item(db, item):
                    embedded += 1
            print(f"✅ Embedded {embedded} items with {embedding_service.embedder.model_version}")

            print("🎉 Demo data seeded successfully!")
            print("\n🚀 Try: synapse search \"transformer architecture\"")

        except Exception as e:
            await db.rollback()
            print(f"❌ Error seeding data: {e}")
            raise
        finally:
            await database.close()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
