from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.config.logging import get_logger, setup_logging
from api.config.settings import Settings, settings as default_settings
from api.infra.database import close_database
from api.v1.core.exceptions import (
    RequestContextMiddleware,
    SynapseException,
    general_exception_handler,
    http_exception_handler,
    synapse_exception_handler,
)
from api.v1.core.registries import query_parser_registry, vectorizer_registry
from api.v1.healthz import router as health_router
from api.v1.items.routes import router as items_router
from api.v1.search.dependencies import build_components
from api.v1.search.registry_init import (
    init_query_parser_registry,
    init_vectorizer_registry,
)
from api.v1.search.routes import chat_router, router as search_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    components = app.state.components
    logger.info(
        "Starting Synapse",
        environment=components.settings.environment,
        embeddings=components.settings.embeddings.value,
        model_version=components.embedder.model_version,
    )
    yield
    await close_database()
    logger.info("Synapse stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings

    # Initialize structured logging
    setup_logging(settings)

    # Register pluggable implementations before anything resolves them
    init_vectorizer_registry(settings)
    init_query_parser_registry()

    app = FastAPI(
        title=settings.app_name,
        description="Semantic retrieval over a personal knowledge base",
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
        # All endpoints live under the /v1/ prefix
        openapi_url="/v1/openapi.json" if settings.debug else None,
        docs_url="/v1/docs" if settings.debug else None,
        redoc_url="/v1/redoc" if settings.debug else None,
    )

    # Application-scoped components: embedder cache and search telemetry
    app.state.components = build_components(settings)

    # Add middleware
    app.add_middleware(RequestContextMiddleware)

    # Add CORS middleware for development
    if settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Add exception handlers
    app.add_exception_handler(SynapseException, synapse_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers with /v1 prefix
    app.include_router(health_router, prefix="/v1", tags=["health"])
    app.include_router(items_router, prefix="/v1", tags=["items"])
    app.include_router(search_router, prefix="/v1")
    app.include_router(chat_router, prefix="/v1")

    # Freeze registries in non-development environments to prevent runtime modifications
    if settings.environment != "development":
        vectorizer_registry.freeze()
        query_parser_registry.freeze()

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        workers=1 if default_settings.debug else default_settings.workers,
    )
