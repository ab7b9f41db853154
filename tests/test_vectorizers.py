from types import SimpleNamespace

import httpx
import pytest

from api.config.settings import Settings
from api.v1.core.exceptions import EmbeddingServiceError
from api.v1.search.embedder import Embedder
from api.v1.search.vectorizers import (
    OpenAIVectorizer,
    SentenceBERTVectorizer,
    StubVectorizer,
    build_vectorizers,
)

openai = pytest.importorskip("openai")

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


class FakeEmbeddings:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def vectorizer_with(
    outcome, model_name: str = "text-embedding-3-small"
) -> tuple[OpenAIVectorizer, FakeEmbeddings]:
    vectorizer = OpenAIVectorizer(model_name, api_key="test-key")
    embeddings = FakeEmbeddings(outcome)
    vectorizer._client = SimpleNamespace(embeddings=embeddings)
    return vectorizer, embeddings


def status_error(status_code: int) -> Exception:
    response = httpx.Response(status_code, request=REQUEST)
    return openai.APIStatusError("failed", response=response, body=None)


def test_returns_embedding():
    payload = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2])])
    vectorizer, embeddings = vectorizer_with(payload)

    assert vectorizer.vectorize("hello") == [0.1, 0.2]
    assert embeddings.calls[0]["model"] == "text-embedding-3-small"


@pytest.mark.parametrize("status_code,transient", [(429, True), (503, True), (400, False)])
def test_status_errors_are_classified(status_code, transient):
    vectorizer, _ = vectorizer_with(status_error(status_code))

    with pytest.raises(EmbeddingServiceError) as exc_info:
        vectorizer.vectorize("hello")

    assert exc_info.value.transient is transient
    assert exc_info.value.details["status_code"] == status_code


def test_connection_errors_are_transient():
    vectorizer, _ = vectorizer_with(openai.APIConnectionError(request=REQUEST))

    with pytest.raises(EmbeddingServiceError) as exc_info:
        vectorizer.vectorize("hello")

    assert exc_info.value.transient is True
    assert isinstance(exc_info.value.__cause__, openai.APIConnectionError)


def test_empty_response_is_rejected():
    vectorizer, _ = vectorizer_with(SimpleNamespace(data=[]))

    with pytest.raises(EmbeddingServiceError, match="Invalid response format"):
        vectorizer.vectorize("hello")


def test_missing_api_key():
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        OpenAIVectorizer().load()


def test_build_vectorizers_from_settings():
    settings = Settings(openai_embedding_model="text-embedding-3-large", sbert_model_name="mini")

    vectorizers = build_vectorizers(settings)

    assert isinstance(vectorizers["stub"], StubVectorizer)
    assert isinstance(vectorizers["sbert"], SentenceBERTVectorizer)
    assert vectorizers["sbert"].get_model_version() == "sbert-mini"
    assert vectorizers["openai"].get_model_version() == "openai-text-embedding-3-large"
    assert vectorizers["openai"].get_dimension() == 3072


@pytest.mark.parametrize(
    "model_name,dimension",
    [("text-embedding-3-small", 1536), ("text-embedding-3-large", 3072)],
)
def test_dimension_follows_model(model_name, dimension):
    assert OpenAIVectorizer(model_name).get_dimension() == dimension


def test_unknown_model_dimension_comes_from_response():
    payload = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
    vectorizer, _ = vectorizer_with(payload, model_name="nomic-embed-text")

    assert vectorizer.get_dimension() is None
    vectorizer.vectorize("hello")
    assert vectorizer.get_dimension() == 3


async def test_large_model_passes_embedder_dimension_check(test_settings):
    payload = SimpleNamespace(data=[SimpleNamespace(embedding=[0.5] * 3072)])
    vectorizer, _ = vectorizer_with(payload, model_name="text-embedding-3-large")
    embedder = Embedder(test_settings, vectorizer=vectorizer)

    vector = await embedder.embed("hello")

    assert len(vector) == 3072
    assert embedder.model_info()["embedding_dimension"] == 3072
