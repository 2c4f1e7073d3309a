"""FastAPI dependencies for SQLModel integration."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.engine import Engine
from sqlmodel import Session

from core.cache import TTLCache
from core.config import Settings
from core.database.repository import ModelPriceRepository, UsageRecordRepository
from core.log import get_logger
from core.models.api.responses import ExploreResponse, OverviewResponse
from core.services import ExploreService, OverviewService, RecordQueryService

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


# Database engine dependency
def get_engine(request: Request) -> Engine:
    """Get database engine from app state."""
    engine: Engine = request.app.state.engine
    return engine


# Database session dependency
def get_db(
    engine: Annotated[Engine, Depends(get_engine)],
) -> Generator[Session, None, None]:
    """Get database session from app state."""
    with Session(engine) as session:
        yield session


# Cache dependencies
def get_explore_cache(request: Request) -> TTLCache[ExploreResponse]:
    """Get the shared explore result cache from app state."""
    cache: TTLCache[ExploreResponse] = request.app.state.explore_cache
    return cache


def get_overview_cache(request: Request) -> TTLCache[OverviewResponse]:
    """Get the shared overview result cache from app state."""
    cache: TTLCache[OverviewResponse] = request.app.state.overview_cache
    return cache


# Repository dependencies
def get_usage_record_repository(
    db: Annotated[Session, Depends(get_db)],
) -> UsageRecordRepository:
    """Get usage record repository."""
    return UsageRecordRepository(db)


def get_model_price_repository(
    db: Annotated[Session, Depends(get_db)],
) -> ModelPriceRepository:
    """Get model price repository."""
    return ModelPriceRepository(db)


# Service dependencies
def get_record_query_service(
    repository: Annotated[UsageRecordRepository, Depends(get_usage_record_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RecordQueryService:
    """Get record query service."""
    return RecordQueryService(repository, settings)


def get_explore_service(
    repository: Annotated[UsageRecordRepository, Depends(get_usage_record_repository)],
    cache: Annotated[TTLCache[ExploreResponse], Depends(get_explore_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ExploreService:
    """Get explore service."""
    return ExploreService(repository, cache, settings)



def get_overview_service(
    repository: Annotated[UsageRecordRepository, Depends(get_usage_record_repository)],
    cache: Annotated[TTLCache[OverviewResponse], Depends(get_overview_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OverviewService:
    """Get overview service."""
    return OverviewService(repository, cache, settings)
