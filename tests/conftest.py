"""Global pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from datetime import datetime
from logging import Logger
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session

from core import setup_test_logging
from core.cache import TTLCache
from core.config import Settings
from core.database.engine import create_database_tables
from core.database.repository import ModelPriceRepository, UsageRecordRepository
from core.models.api.responses import ExploreResponse, OverviewResponse
from core.models.rows import UsageRecord
from core.types import Environment

from tests.utils.test_helpers import TestDataFactory


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Setup test logging for all tests."""
    setup_test_logging()


@pytest.fixture(scope="function")
def logger() -> Logger:
    """Provide a logger instance for tests."""
    from core import get_logger

    return get_logger("test")


@pytest.fixture
def test_settings() -> Settings:
    """Settings for the testing environment."""
    return Settings(environment=Environment.TESTING)


@pytest.fixture
def mock_db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Create a real database engine for testing using a file-based database."""
    # Use a file-based SQLite database in tmp_path to avoid in-memory engine instance issues
    db_path = tmp_path / "test.db"
    database_url = f"sqlite:///{db_path}"

    engine = create_engine(
        database_url,
        echo=False,
        connect_args={
            "check_same_thread": False,
            "timeout": 60.0,
        },
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
    )

    create_database_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def mock_db_session(mock_db_engine: Engine) -> Generator[Session, None, None]:
    with Session(mock_db_engine) as session:
        yield session


@pytest.fixture
def usage_record_repo(mock_db_session: Session) -> UsageRecordRepository:
    """Create usage record repository."""
    return UsageRecordRepository(mock_db_session)


@pytest.fixture
def model_price_repo(mock_db_session: Session) -> ModelPriceRepository:
    """Create model price repository."""
    return ModelPriceRepository(mock_db_session)


@pytest.fixture
def seed_records(
    usage_record_repo: UsageRecordRepository,
) -> Callable[..., list[UsageRecord]]:
    """Insert evenly spaced usage records and return them in insertion order."""

    def _seed(count: int, **kwargs: object) -> list[UsageRecord]:
        records = TestDataFactory.create_test_records(count, **kwargs)  # type: ignore[arg-type]
        return usage_record_repo.create_many(records)

    return _seed


@pytest.fixture
def explore_cache() -> TTLCache[ExploreResponse]:
    """Create an empty explore cache."""
    return TTLCache(max_entries=100, ttl_seconds=30.0)


@pytest.fixture
def overview_cache() -> TTLCache[OverviewResponse]:
    """Create an empty overview cache."""
    return TTLCache(max_entries=100, ttl_seconds=30.0)


@pytest.fixture
def test_app(
    mock_db_engine: Engine,
    test_settings: Settings,
    explore_cache: TTLCache[ExploreResponse],
    overview_cache: TTLCache[OverviewResponse],
) -> FastAPI:
    """Create an app wired to the test database without running the lifespan."""
    from api.app import create_app

    app = create_app()
    app.state.settings = test_settings
    app.state.engine = mock_db_engine
    app.state.explore_cache = explore_cache
    app.state.overview_cache = overview_cache
    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create a test client for the wired app."""
    return TestClient(test_app)


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed reference time for window calculations."""
    return TestDataFactory.BASE_TIME
