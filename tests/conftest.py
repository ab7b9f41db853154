import os
from collections.abc import AsyncGenerator, Generator

import pytest
from fakes import FakeIndex, FakeStore, KeywordVectorizer
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from api.config.settings import Settings
from api.infra.database import Base, get_session
from api.main import create_app
from api.v1.search.dependencies import build_components
from api.v1.search.embedder import Embedder
from api.v1.search.query_parser import HeuristicQueryParser


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a fast retry schedule."""
    return Settings(embedding_retry_base_ms=1, embedding_cache_size=100)


@pytest.fixture
def vectorizer() -> KeywordVectorizer:
    return KeywordVectorizer()


@pytest.fixture
def embedder(test_settings, vectorizer) -> Embedder:
    return Embedder(test_settings, vectorizer=vectorizer)


@pytest.fixture
def fake_index(embedder) -> FakeIndex:
    return FakeIndex(embedder)


@pytest.fixture
def fake_store(fake_index) -> FakeStore:
    return FakeStore(fake_index)


@pytest.fixture
def components(test_settings, embedder, fake_index, fake_store):
    """Search components wired to the in-memory index and store."""
    return build_components(
        test_settings,
        embedder=embedder,
        parser=HeuristicQueryParser(),
        index=fake_index,
        store=fake_store,
    )


@pytest.fixture
def search_app(components):
    """Application whose search pipeline never touches the database."""
    app = create_app()
    app.state.components = components

    async def no_session():
        yield None

    app.dependency_overrides[get_session] = no_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def search_client(search_app) -> Generator[TestClient, None, None]:
    with TestClient(search_app) as test_client:
        yield test_client


@pytest.fixture
def simple_app():
    """Create a simple test FastAPI application without database dependencies."""
    return create_app()


@pytest.fixture
def simple_client(simple_app) -> Generator[TestClient, None, None]:
    """Create a simple test client without database dependencies."""
    with TestClient(simple_app) as test_client:
        yield test_client


# Database-backed fixtures; skipped unless DATABASE_URL points at PostgreSQL


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    database_url = os.getenv("DATABASE_URL")

    if not database_url or "postgresql" not in database_url:
        pytest.skip("No PostgreSQL database available for testing")

    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        yield session
        # Clean up data after each test while preserving schema
        await session.rollback()
        await session.execute(text("DELETE FROM item_embeddings"))
        await session.execute(text("DELETE FROM items"))
        await session.execute(text("DELETE FROM collections"))
        await session.execute(text("DELETE FROM users"))
        await session.commit()


@pytest.fixture
def app(db_session):
    """Create a test FastAPI application with test database."""
    app = create_app()
    app.dependency_overrides[get_session] = lambda: db_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client."""
    with TestClient(app) as test_client:
        yield test_client
