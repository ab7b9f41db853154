"""
Vectorizer implementations.

Supports multiple backends: stub (deterministic feature hashing),
sbert (sentence-transformers), openai (OpenAI-compatible embeddings API).
"""

import hashlib
import math
import re

from api.config.settings import Settings
from api.v1.core.exceptions import EmbeddingServiceError

_TOKEN_RE = re.compile(r"\w+")


class StubVectorizer:
    """
    Deterministic feature-hashing vectorizer for development and testing.

    Each lowercase word token is hashed into one of 768 buckets and the
    bucket counts are L2 normalized, so texts that share words have a
    positive cosine similarity. No external dependencies or API calls.
    """

    dimension = 768

    def load(self) -> None:
        """Nothing to load."""

    def vectorize(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "big") % self.dimension
            vector[index] += 1.0

        # L2 normalize the vector for cosine similarity
        norm = math.sqrt(sum(x * x for x in vector))
        if norm > 0:
            vector = [x / norm for x in vector]

        return vector

    def get_dimension(self) -> int:
        return self.dimension

    def get_model_version(self) -> str:
        return "stub-hashing-v2"


class SentenceBERTVectorizer:
    """
    Sentence-BERT vectorizer using all-mpnet-base-v2.

    Mean-pooled, normalized 768-dimensional embeddings. The model is loaded
    lazily on first use.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2", dimension: int = 768):
        self._model = None
        self._model_name = model_name
        self._dimension = dimension

    def load(self) -> None:
        """Load the sentence-transformers model."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise RuntimeError(
                    "sentence-transformers not installed. "
                    "Run: pip install 'synapse-kb[sbert]'"
                ) from e
            self._model = SentenceTransformer(self._model_name)
            self._dimension = self._model.get_sentence_embedding_dimension()

    def vectorize(self, text: str) -> list[float]:
        """Generate semantic embedding using SentenceBERT."""
        self.load()

        try:
            embedding = self._model.encode(
                text, convert_to_tensor=False, normalize_embeddings=True
            )
        except Exception as e:
            raise EmbeddingServiceError(f"Local model inference failed: {e}") from e

        # Convert numpy array to list
        return embedding.tolist()

    def get_dimension(self) -> int:
        return self._dimension

    def get_model_version(self) -> str:
        return f"sbert-{self._model_name}"


OPENAI_MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIVectorizer:
    """
    OpenAI embeddings vectorizer, text-embedding-3-small by default.

    The dimension comes from the known model table; for other models served
    by a compatible endpoint it is taken from the first response.

    Retries are handled by the Embedder, so the client is created with
    ``max_retries=0`` and failures are classified as transient (timeouts,
    connection errors, 429, 5xx) or deterministic (other 4xx, bad payloads).
    """

    def __init__(
        self,
        model_name: str = "text-embedding-3-small",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 30,
    ):
        self._client = None
        self._model_name = model_name
        self._dimension = OPENAI_MODEL_DIMENSIONS.get(model_name)
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout

    def load(self) -> None:
        """Create the OpenAI client."""
        if self._client is None:
            try:
                from openai import OpenAI
            except ImportError as e:
                raise RuntimeError(
                    "openai package not installed. Run: pip install 'synapse-kb[openai]'"
                ) from e

            if not self._api_key:
                raise ValueError(
                    "OPENAI_API_KEY is required for the OpenAI vectorizer"
                )
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )

    def vectorize(self, text: str) -> list[float]:
        """Generate embedding using the OpenAI API."""
        import openai

        self.load()

        try:
            response = self._client.embeddings.create(
                model=self._model_name, input=text, encoding_format="float"
            )
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise EmbeddingServiceError(
                f"Embedding API unreachable: {e}", transient=True
            ) from e
        except openai.APIStatusError as e:
            transient = e.status_code == 429 or e.status_code >= 500
            raise EmbeddingServiceError(
                f"Embedding API error: {e.status_code}",
                transient=transient,
                details={"status_code": e.status_code},
            ) from e

        if not response.data or not response.data[0].embedding:
            raise EmbeddingServiceError("Invalid response format from embedding API")
        embedding = list(response.data[0].embedding)
        if self._dimension is None:
            self._dimension = len(embedding)
        return embedding

    def get_dimension(self) -> int | None:
        return self._dimension

    def get_model_version(self) -> str:
        return f"openai-{self._model_name}"


def build_vectorizers(settings: Settings) -> dict[str, object]:
    """Vectorizer instances keyed by provider name."""
    return {
        "stub": StubVectorizer(),
        "sbert": SentenceBERTVectorizer(settings.sbert_model_name),
        "openai": OpenAIVectorizer(
            settings.openai_embedding_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.embedding_request_timeout_s,
        ),
    }
