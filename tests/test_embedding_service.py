import pytest
from fakes import KeywordVectorizer

from api.v1.core.exceptions import EmbeddingServiceError
from api.v1.core.security import string_to_uuid
from api.v1.items.models import Item, User
from api.v1.search.embedder import Embedder
from api.v1.search.embedding_service import EmbeddingService
from api.v1.search.models import ItemEmbedding

OWNER = string_to_uuid("backfill-owner")


class FailingOnVectorizer(KeywordVectorizer):
    """Raises a deterministic error for texts containing a marker word."""

    def vectorize(self, text: str) -> list[float]:
        if "poison" in text:
            raise EmbeddingServiceError("rejected input")
        return super().vectorize(text)


@pytest.fixture
def service(test_settings):
    embedder = Embedder(test_settings, vectorizer=FailingOnVectorizer())
    return EmbeddingService(embedder, test_settings)


async def add_items(db_session, *titles):
    db_session.add(User(id=OWNER, email="backfill@synapse.local", name="backfill"))
    items = [
        Item(user_id=OWNER, content_type="note", title=title, tags=[], meta={})
        for title in titles
    ]
    db_session.add_all(items)
    await db_session.commit()
    return items


async def test_backfill_creates_missing_embeddings(db_session, service):
    await add_items(db_session, "transformer notes", "garden ideas", None, "poison pill")

    stats = await service.regenerate_missing(db_session, owner_id=OWNER, batch_size=2)

    assert stats == {"processed": 4, "created": 2, "updated": 0, "skipped": 1, "errors": 1}

    coverage = await service.get_embedding_stats(db_session, OWNER)
    assert coverage["total_items"] == 4
    assert coverage["items_with_embeddings"] == 2
    assert coverage["missing_embeddings"] == 2
    assert coverage["model_versions"] == {"keyword-test-v1": 2}


async def test_backfill_is_idempotent(db_session, service):
    await add_items(db_session, "transformer notes", "garden ideas")

    await service.regenerate_missing(db_session, owner_id=OWNER)
    stats = await service.regenerate_missing(db_session, owner_id=OWNER)

    assert stats["processed"] == 0


async def test_forced_backfill_updates_existing(db_session, service):
    await add_items(db_session, "transformer notes", "garden ideas")
    await service.regenerate_missing(db_session, owner_id=OWNER)

    stats = await service.regenerate_missing(db_session, owner_id=OWNER, force_recompute=True)

    assert stats["updated"] == 2
    assert stats["created"] == 0


async def test_compute_embedding_reuses_current_row(db_session, service):
    (item,) = await add_items(db_session, "transformer notes")

    first = await service.compute_embedding_for_item(db_session, item)
    second = await service.compute_embedding_for_item(db_session, item)

    assert first.id == second.id
    assert first.meta == {"text_length": len("transformer notes"), "content_type": "note"}


async def test_symbol_only_text_is_skipped(db_session, service):
    await add_items(db_session, "★★★", "garden ideas")

    stats = await service.regenerate_missing(db_session, owner_id=OWNER)

    assert stats == {"processed": 2, "created": 1, "updated": 0, "skipped": 1, "errors": 0}


async def test_clearing_text_drops_current_embedding(db_session, service):
    (item,) = await add_items(db_session, "transformer notes")
    await service.compute_embedding_for_item(db_session, item)
    db_session.add(ItemEmbedding(item_id=item.id, model_version="older-model", embedding=[1.0, 0.0]))
    item.title = "★★★"
    await db_session.commit()

    result = await service.compute_embedding_for_item(db_session, item, force_recompute=True)

    assert result is None
    coverage = await service.get_embedding_stats(db_session, OWNER)
    assert coverage["items_with_embeddings"] == 0
    assert coverage["model_versions"] == {"older-model": 1}
