"""Fixtures for record, explore and overview service tests."""

from datetime import datetime

import pytest

from core.cache import TTLCache
from core.config import Settings
from core.database.repository import UsageRecordRepository
from core.models.api.responses import ExploreResponse, OverviewResponse
from core.services import ExploreService, OverviewService, RecordQueryService


@pytest.fixture
def record_service(
    usage_record_repo: UsageRecordRepository, test_settings: Settings
) -> RecordQueryService:
    """Create RecordQueryService instance."""
    return RecordQueryService(usage_record_repo, test_settings)


@pytest.fixture
def explore_service(
    usage_record_repo: UsageRecordRepository,
    explore_cache: TTLCache[ExploreResponse],
    test_settings: Settings,
    fixed_now: datetime,
) -> ExploreService:
    """Create ExploreService instance with a frozen clock."""
    return ExploreService(
        usage_record_repo, explore_cache, test_settings, now=lambda: fixed_now
    )


@pytest.fixture
def overview_service(
    usage_record_repo: UsageRecordRepository,
    overview_cache: TTLCache[OverviewResponse],
    test_settings: Settings,
    fixed_now: datetime,
) -> OverviewService:
    """Create OverviewService instance with a frozen clock."""
    return OverviewService(
        usage_record_repo, overview_cache, test_settings, now=lambda: fixed_now
    )
