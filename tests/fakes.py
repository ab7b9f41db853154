"""In-memory stand-ins for the similarity index, item store and vectorizer."""

import re
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from api.v1.core.security import string_to_uuid
from api.v1.items.models import Item
from api.v1.items.utils import embedding_text
from api.v1.search.embedder import Embedder, cosine_similarity, preprocess_text
from api.v1.search.filters import SearchFilters
from api.v1.search.index import SearchCandidate

OWNER_ID = string_to_uuid("anonymous")

# Each vocabulary word is one axis, so similarities are easy to work out by hand
VOCABULARY = (
    "transformer", "architecture", "attention", "model", "models", "scaling",
    "production", "inference", "shoes", "black", "white", "running", "sneakers",
    "argon", "database", "internals", "storage", "recipe", "pasta", "garden",
    "cosine", "similarity", "vector", "notes", "ideas", "reading",
)
_TOKEN_RE = re.compile(r"\w+")


class KeywordVectorizer:
    """Bag-of-words over a fixed vocabulary; unknown words are ignored."""

    def __init__(self, vocabulary: tuple[str, ...] = VOCABULARY):
        self.vocabulary = {word: idx for idx, word in enumerate(vocabulary)}
        self.calls: list[str] = []
        self.loaded = 0

    def load(self) -> None:
        self.loaded += 1

    def vectorize(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * len(self.vocabulary)
        for token in _TOKEN_RE.findall(text.lower()):
            if token in self.vocabulary:
                vector[self.vocabulary[token]] += 1.0
        return vector

    def get_dimension(self) -> int:
        return len(self.vocabulary)

    def get_model_version(self) -> str:
        return "keyword-test-v1"


def make_item(
    title: str | None = None,
    content_type: str = "article",
    description: str | None = None,
    content: str | None = None,
    tags: list[str] | None = None,
    owner_id: UUID = OWNER_ID,
    age_minutes: int = 0,
    **fields,
) -> Item:
    """Transient Item with every column a response model reads."""
    created = datetime(2026, 10, 1, 12, 0, tzinfo=UTC) - timedelta(minutes=age_minutes)
    return Item(
        id=fields.pop("id", uuid4()),
        user_id=owner_id,
        title=title,
        description=description,
        content=content,
        content_type=content_type,
        url=fields.pop("url", None),
        source_domain=None,
        meta=fields.pop("meta", {}),
        tags=tags or [],
        collection_id=None,
        is_favorite=fields.pop("is_favorite", False),
        is_archived=fields.pop("is_archived", False),
        created_at=created,
        updated_at=created,
        accessed_at=created,
    )


class FakeIndex:
    """In-memory similarity index; supports owner, type, tag and favorite filters."""

    def __init__(self, embedder: Embedder):
        self.embedder = embedder
        self.items: list[Item] = []
        self.embeddings: dict[UUID, list[float]] = {}
        self.calls: list[dict] = []
        self.error: Exception | None = None

    def add(self, *items: Item) -> None:
        """Store items with vectors computed the way the embedder would."""
        for item in items:
            self.items.append(item)
            text_value = preprocess_text(embedding_text(item), self.embedder.max_chars)
            if text_value:
                self.embeddings[item.id] = self.embedder.vectorizer.vectorize(text_value)

    async def search(
        self,
        session,
        owner_id: UUID,
        embedding: list[float],
        model_version: str,
        filters: SearchFilters | None = None,
        limit: int = 20,
        exclude_item_id: UUID | None = None,
    ) -> list[SearchCandidate]:
        self.calls.append(
            {
                "owner_id": owner_id,
                "model_version": model_version,
                "filters": filters,
                "limit": limit,
                "exclude_item_id": exclude_item_id,
            }
        )
        if self.error:
            raise self.error

        filters = filters or SearchFilters()
        candidates = []
        for item in self.items:
            if item.user_id != owner_id or item.id == exclude_item_id:
                continue
            if item.is_archived and not filters.include_archived:
                continue
            if filters.content_type and item.content_type != filters.content_type:
                continue
            if filters.tags and not set(filters.tags) & set(item.tags):
                continue
            if filters.is_favorite is not None and item.is_favorite != filters.is_favorite:
                continue
            if item.id not in self.embeddings:
                continue
            similarity = cosine_similarity(embedding, self.embeddings[item.id])
            candidates.append(SearchCandidate(item=item, distance=1.0 - similarity))

        candidates.sort(key=lambda c: (c.distance, -c.item.created_at.timestamp()))
        return candidates[:limit]

    async def get_item_embedding(self, session, item_id: UUID, model_version: str):
        return self.embeddings.get(item_id)


class FakeStore:
    """In-memory ItemStore."""

    def __init__(self, index: FakeIndex):
        self.index = index

    def _owned(self, owner_id: UUID) -> list[Item]:
        return [
            item for item in self.index.items
            if item.user_id == owner_id and not item.is_archived
        ]

    async def get(self, session, owner_id: UUID, item_id: UUID):
        for item in self.index.items:
            if item.id == item_id and item.user_id == owner_id:
                return item
        return None

    async def list_recent(self, session, owner_id: UUID, limit: int = 100):
        items = sorted(self._owned(owner_id), key=lambda i: i.created_at, reverse=True)
        return items[:limit]

    async def count(self, session, owner_id: UUID) -> int:
        return len(self._owned(owner_id))

    async def popular_tags(self, session, owner_id: UUID, limit: int = 10):
        counts: dict[str, int] = {}
        for item in self._owned(owner_id):
            for tag in item.tags:
                counts[tag] = counts.get(tag, 0) + 1
        ranked = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
        return ranked[:limit]


