"""
Text embedding with preprocessing, caching and retries.

The Embedder wraps the configured vectorizer. Model inference runs in a worker
thread so the event loop keeps serving other requests while a model computes.
"""

import asyncio
import hashlib
import math
import random
import re
from collections import OrderedDict
from typing import Any

from api.config.logging import get_logger
from api.config.settings import Settings
from api.v1.core.exceptions import EmbeddingServiceError, InvalidInputError
from api.v1.core.registries import Vectorizer, vectorizer_registry

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_CHARS_RE = re.compile(r"[^\w\s.,!?-]")


def preprocess_text(text: str, max_chars: int) -> str:
    """Trim, collapse whitespace, drop special characters and truncate."""
    cleaned = _WHITESPACE_RE.sub(" ", text.strip())
    cleaned = _DISALLOWED_CHARS_RE.sub("", cleaned)
    return cleaned[:max_chars].strip()


def cosine_similarity(vec1: list[float], vec2: list[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero magnitude."""
    if len(vec1) != len(vec2):
        raise ValueError(
            f"Vector dimensions differ: {len(vec1)} != {len(vec2)}"
        )
    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    mag1 = math.sqrt(sum(a * a for a in vec1))
    mag2 = math.sqrt(sum(b * b for b in vec2))
    if mag1 == 0 or mag2 == 0:
        return 0.0
    return dot_product / (mag1 * mag2)


class Embedder:
    """
    Turns text into fixed-length vectors using the configured vectorizer.

    Cache keys are SHA-256 digests of the model version plus the full
    preprocessed text. Eviction is FIFO: once the cache holds more than
    ``embedding_cache_size`` entries the oldest inserted entry is dropped,
    regardless of how recently it was read.
    """

    def __init__(self, settings: Settings, vectorizer: Vectorizer | None = None):
        self.settings = settings
        self.max_chars = settings.embedding_max_chars
        self.cache_size = settings.embedding_cache_size
        self.max_attempts = max(1, settings.embedding_max_retries)
        self.retry_base_delay = settings.embedding_retry_base_ms / 1000
        self._vectorizer = vectorizer
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._cache: OrderedDict[str, list[float]] = OrderedDict()

    @property
    def vectorizer(self) -> Vectorizer:
        if self._vectorizer is None:
            self._vectorizer = vectorizer_registry.get(self.settings.embeddings.value)
        return self._vectorizer

    @property
    def model_version(self) -> str:
        return self.vectorizer.get_model_version()

    @property
    def dimension(self) -> int:
        return self.vectorizer.get_dimension()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    async def initialize(self) -> None:
        """Load the underlying model once; later calls return immediately."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            logger.info("Initializing embedding model", model=self.model_version)
            await asyncio.to_thread(self.vectorizer.load)
            self._initialized = True
            logger.info(
                "Embedding model ready",
                model=self.model_version,
                dimension=self.dimension,
            )

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cache_key(self, cleaned: str) -> str:
        digest = hashlib.sha256()
        digest.update(self.model_version.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(cleaned.encode("utf-8"))
        return digest.hexdigest()

    async def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Raises:
            InvalidInputError: text is not a string or has nothing to embed
            EmbeddingServiceError: the backend failed after retries
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Text must be a non-empty string")

        await self.initialize()

        cleaned = preprocess_text(text, self.max_chars)
        if not cleaned:
            raise InvalidInputError("Text contains no embeddable characters")

        key = self._cache_key(cleaned)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Embedding cache hit", preview=cleaned[:50])
            return list(cached)

        vector = await self._vectorize_with_retry(cleaned)

        if len(vector) != self.dimension:
            raise EmbeddingServiceError(
                f"Invalid embedding dimension: {len(vector)}, expected {self.dimension}"
            )

        self._cache[key] = vector
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

        return list(vector)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts concurrently; output order matches input order."""
        if not isinstance(texts, list):
            raise InvalidInputError("texts must be a list of strings")
        if not texts:
            return []

        logger.debug("Generating batch embeddings", count=len(texts))
        return list(await asyncio.gather(*(self.embed(text) for text in texts)))

    async def similarity(self, text1: str, text2: str) -> float:
        """Cosine similarity between the embeddings of two texts."""
        vec1, vec2 = await asyncio.gather(self.embed(text1), self.embed(text2))
        return cosine_similarity(vec1, vec2)

    async def _vectorize_with_retry(self, text: str) -> list[float]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.to_thread(self.vectorizer.vectorize, text)
            except EmbeddingServiceError as e:
                if not e.transient or attempt >= self.max_attempts:
                    e.details["attempts"] = attempt
                    logger.error(
                        "Embedding generation failed",
                        attempt=attempt,
                        transient=e.transient,
                        error=e.message,
                    )
                    raise
                delay = self._retry_delay(attempt)
                logger.warning(
                    "Transient embedding failure, retrying",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_s=round(delay, 3),
                    error=e.message,
                )
                await asyncio.sleep(delay)
            except Exception as e:
                raise EmbeddingServiceError(
                    f"Failed to generate embedding: {e}",
                    details={"attempts": attempt},
                ) from e
        raise EmbeddingServiceError("Embedding retries exhausted")

    def _retry_delay(self, attempt: int) -> float:
        """Exponential backoff with ±25% jitter."""
        delay = self.retry_base_delay * (2 ** (attempt - 1))
        jitter = delay * 0.25 * (2 * random.random() - 1)
        return max(0.0, delay + jitter)

    def model_info(self) -> dict[str, Any]:
        return {
            "model_version": self.model_version,
            "embedding_dimension": self.dimension,
            "is_initialized": self._initialized,
            "cache_size": len(self._cache),
            "max_input_chars": self.max_chars,
        }
