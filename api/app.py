"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    channels_router,
    common_router,
    explore_router,
    overview_router,
    prices_router,
    records_router,
)
from api.utils.error_handler import DATA_SOURCE_UNAVAILABLE, INTERNAL_SERVER_ERROR
from core import get_logger, setup_logging, setup_production_logging
from core.cache import TTLCache
from core.config import load_settings
from core.database.engine import create_database_engine, create_database_tables
from core.exceptions import DataSourceError, QueryError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = load_settings()
    app.state.settings = settings
    if settings.is_production:
        setup_production_logging(settings.log_level)
    else:
        setup_logging(
            level=settings.log_level,
            enable_file_logging=settings.is_development,
        )
    logger.info(f"Starting TokenScope API server in {settings.environment} mode")

    # Create tables on startup
    engine = create_database_engine(
        settings.environment, database_url=settings.database_url
    )
    create_database_tables(engine)
    app.state.engine = engine

    app.state.explore_cache = TTLCache(
        max_entries=settings.explore_cache_max_entries,
        ttl_seconds=settings.explore_cache_ttl_seconds,
    )
    logger.info(
        f"Explore cache ready: {settings.explore_cache_max_entries} entries, "
        f"{settings.explore_cache_ttl_seconds}s TTL"
    )
    app.state.overview_cache = TTLCache(
        max_entries=settings.overview_cache_max_entries,
        ttl_seconds=settings.overview_cache_ttl_seconds,
    )

    logger.info("TokenScope API server initialized successfully")

    yield

    engine.dispose()
    logger.info("TokenScope API server shutting down")


async def query_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer client query errors raised while resolving parameters."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
    )


async def data_source_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer data source failures without exposing driver details."""
    logger.error(f"Data source failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": DATA_SOURCE_UNAVAILABLE},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": INTERNAL_SERVER_ERROR},
    )


def create_app() -> FastAPI:
    """Create FastAPI app with current settings."""
    settings = load_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Read API for LLM usage telemetry",
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(QueryError, query_error_handler)
    app.add_exception_handler(DataSourceError, data_source_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(common_router)
    app.include_router(records_router)
    app.include_router(explore_router)
    app.include_router(overview_router)
    app.include_router(channels_router)
    app.include_router(prices_router)
    return app


app = create_app()
