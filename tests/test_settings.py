from unittest.mock import patch

import pytest

from api.config.settings import AuthMode, EmbeddingsType, Settings, get_settings


def test_default_settings():
    """Test default settings values."""
    settings = Settings()

    assert settings.app_name == "Synapse"
    assert settings.version == "1.0.0"
    assert settings.environment == "development"
    assert settings.debug is True
    assert settings.auth_mode == AuthMode.NONE
    assert settings.embeddings == EmbeddingsType.STUB


def test_retrieval_defaults():
    """Test the search and recommendation tuning defaults."""
    settings = Settings()

    assert settings.embedding_max_chars == 512
    assert settings.embedding_cache_size == 1000
    assert settings.embedding_max_retries == 3
    assert settings.search_default_limit == 20
    assert settings.search_candidate_multiplier == 3
    assert settings.rerank_min_relevance == 0.35
    assert settings.rerank_type_boost == 1.2
    assert settings.recommendation_history_size == 100
    assert settings.recommendation_similarity_floor == 0.6


def test_production_validation_blocks_none_auth():
    """Test that production environment blocks AUTH_MODE=none."""
    with pytest.raises(ValueError, match="AUTH_MODE=none is not allowed in production"):
        Settings(environment="production", auth_mode=AuthMode.NONE)


def test_production_validation_blocks_dev_auth():
    """Test that production environment blocks AUTH_MODE=dev."""
    with pytest.raises(ValueError, match="AUTH_MODE=dev is not allowed in production"):
        Settings(environment="production", auth_mode=AuthMode.DEV)


def test_production_allows_oidc_auth():
    """Test that production environment allows AUTH_MODE=oidc."""
    settings = Settings(environment="production", auth_mode=AuthMode.OIDC)
    assert settings.environment == "production"
    assert settings.auth_mode == AuthMode.OIDC


def test_development_allows_all_auth_modes():
    """Test that development environment allows all auth modes."""
    for auth_mode in AuthMode:
        settings = Settings(environment="development", auth_mode=auth_mode)
        assert settings.auth_mode == auth_mode


def test_candidate_multiplier_must_be_positive():
    with pytest.raises(ValueError, match="SEARCH_CANDIDATE_MULTIPLIER"):
        Settings(search_candidate_multiplier=0)


def test_settings_dependency_injection():
    """Test the get_settings dependency function."""
    settings = get_settings()
    assert isinstance(settings, Settings)
    assert settings.app_name == "Synapse"


@patch.dict(
    "os.environ",
    {"AUTH_MODE": "oidc", "ENVIRONMENT": "production", "EMBEDDINGS": "openai"},
)
def test_env_var_loading():
    """Test that environment variables are loaded correctly."""
    settings = Settings()
    assert settings.auth_mode == AuthMode.OIDC
    assert settings.environment == "production"
    assert settings.embeddings == EmbeddingsType.OPENAI


@patch.dict("os.environ", {"RERANK_MIN_RELEVANCE": "0.5", "EMBEDDING_CACHE_SIZE": "10"})
def test_tuning_from_environment():
    settings = Settings()
    assert settings.rerank_min_relevance == 0.5
    assert settings.embedding_cache_size == 10
