"""
Initialize the vectorizer and query parser registries.

Registers every implementation whose dependencies are importable and checks
that the configured embeddings provider is among them.
"""

from api.config.settings import EmbeddingsType, Settings, settings as default_settings
from api.v1.core.registries import query_parser_registry, vectorizer_registry
from api.v1.search.query_parser import HeuristicQueryParser
from api.v1.search.vectorizers import build_vectorizers


def init_vectorizer_registry(settings: Settings | None = None):
    """Initialize vectorizer registry with available implementations."""
    settings = settings or default_settings
    vectorizers = build_vectorizers(settings)

    # Always register stub vectorizer (no dependencies)
    if "stub" not in vectorizer_registry.list():
        vectorizer_registry.register("stub", vectorizers["stub"])

    # Register sentence-BERT if available
    try:
        import sentence_transformers  # noqa: F401

        if "sbert" not in vectorizer_registry.list():
            vectorizer_registry.register("sbert", vectorizers["sbert"])
    except ImportError as e:
        if settings.embeddings == EmbeddingsType.SBERT:
            raise RuntimeError(
                "sentence-transformers not installed but EMBEDDINGS=sbert. "
                "Run: pip install 'synapse-kb[sbert]'"
            ) from e

    # Register OpenAI if available
    try:
        import openai  # noqa: F401

        if "openai" not in vectorizer_registry.list():
            vectorizer_registry.register("openai", vectorizers["openai"])
    except ImportError as e:
        if settings.embeddings == EmbeddingsType.OPENAI:
            raise RuntimeError(
                "openai package not installed but EMBEDDINGS=openai. "
                "Run: pip install 'synapse-kb[openai]'"
            ) from e

    # Validate configured embedding provider is available
    try:
        vectorizer_registry.get(settings.embeddings.value)
    except KeyError as e:
        available = vectorizer_registry.list()
        raise RuntimeError(
            f"Configured embeddings provider '{settings.embeddings.value}' not available. "
            f"Available providers: {available}"
        ) from e


def init_query_parser_registry():
    """Register the built-in query parsers."""
    if "heuristic" not in query_parser_registry.list():
        query_parser_registry.register("heuristic", HeuristicQueryParser())
