from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.config.logging import get_logger
from api.config.settings import Settings, SettingsDep
from api.infra.database import get_session, is_connection_failure
from api.v1.core.exceptions import create_success_response
from api.v1.core.registries import vectorizer_registry
from api.v1.search.dependencies import ComponentsDep, SearchComponents

logger = get_logger(__name__)

router = APIRouter()


class DatabaseHealth(BaseModel):
    """Database health status."""

    connected: bool
    response_time_ms: float | None = None
    error: str | None = None


class EmbeddingModelHealth(BaseModel):
    """Embedding model status."""

    model_version: str
    embedding_dimension: int
    is_initialized: bool
    cache_size: int
    max_input_chars: int


class HealthResponse(BaseModel):
    """Health response with database and embedding model status."""

    ok: bool
    version: str
    environment: str
    timestamp: str
    database: DatabaseHealth
    embedding_model: EmbeddingModelHealth
    registered_vectorizers: list[str]


@router.get("/healthz", response_model=dict)
async def health_check(
    settings: Settings = SettingsDep,
    session: AsyncSession = Depends(get_session),
    components: SearchComponents = ComponentsDep,
):
    """Health check with database connectivity and embedding model info."""
    db_health = await _check_database_health(session)

    health = HealthResponse(
        ok=db_health.connected,
        version=settings.version,
        environment=settings.environment,
        timestamp=datetime.now(UTC).isoformat(),
        database=db_health,
        embedding_model=EmbeddingModelHealth(**components.embedder.model_info()),
        registered_vectorizers=vectorizer_registry.list(),
    )

    return create_success_response(data=health.model_dump())


async def _check_database_health(session: AsyncSession) -> DatabaseHealth:
    """Check database connectivity and response time."""
    start_time = datetime.now(UTC)

    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        if not is_connection_failure(e):
            raise
        logger.warning("Database health check failed", error=str(e))
        return DatabaseHealth(connected=False, error=str(e))

    response_time_ms = (datetime.now(UTC) - start_time).total_seconds() * 1000
    return DatabaseHealth(connected=True, response_time_ms=round(response_time_ms, 2))
