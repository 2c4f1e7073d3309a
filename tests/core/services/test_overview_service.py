"""Tests for OverviewService totals, model pages, time series and channels."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlmodel import Session

from core.cache import TTLCache
from core.config import Settings
from core.database.repository import UsageRecordRepository
from core.exceptions import InvalidParameterError
from core.models.api.responses import OverviewResponse
from core.models.domain.query import ChannelQuery, OverviewQuery
from core.models.rows import UsageRecord
from core.services import OverviewService
from core.types import Environment
from tests.utils.test_helpers import TestDataFactory

NOW = TestDataFactory.BASE_TIME

MODELS = ("m-a", "m-b", "m-c", "m-d", "m-e", "m-f", "m-g")


def _record(minutes_ago: int, **kwargs: object) -> UsageRecord:
    return TestDataFactory.create_test_record(
        occurred_at=NOW - timedelta(minutes=minutes_ago), **kwargs  # type: ignore[arg-type]
    )


# =============================================================================
# Totals
# =============================================================================


def test_empty_window(overview_service: OverviewService) -> None:
    response = overview_service.get_overview(OverviewQuery())

    assert response.empty is True
    assert response.days == 14
    assert response.timezone == "UTC"
    overview = response.overview
    assert overview.total_requests == 0
    assert overview.success_rate == 1.0
    assert overview.total_cost == 0.0
    assert overview.models == []
    assert overview.by_day == []
    assert overview.by_hour == []
    assert response.meta.total_models == 0
    assert response.meta.total_pages == 1


def test_totals_count_successes_failures_and_cost(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    mock_db_session.add(TestDataFactory.create_test_price("gpt-4o"))
    TestDataFactory.insert_records(
        mock_db_session,
        [
            _record(10),
            _record(20, is_error=True),
            _record(30, model="claude-3-5-sonnet", reasoning_tokens=50),
            _record(40, model="claude-3-5-sonnet"),
            # Outside the default 14 day window
            _record(60 * 24 * 20),
        ],
    )

    response = overview_service.get_overview(OverviewQuery())

    overview = response.overview
    assert response.empty is False
    assert overview.total_requests == 4
    assert overview.success_count == 3
    assert overview.failure_count == 1
    assert overview.success_rate == pytest.approx(0.75)
    assert overview.total_tokens == 4 * 1200 + 50
    assert overview.total_input_tokens == 4000
    assert overview.total_output_tokens == 800
    assert overview.total_reasoning_tokens == 50
    # Only the two gpt-4o records are priced
    assert overview.total_cost == pytest.approx(0.009)

    by_model = {item.model: item for item in overview.models}
    assert by_model["gpt-4o"].requests == 2
    assert by_model["gpt-4o"].cost == pytest.approx(0.009)
    assert by_model["claude-3-5-sonnet"].cost == 0.0


def test_filters_narrow_totals_but_not_options(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    TestDataFactory.insert_records(
        mock_db_session,
        [
            _record(10, model="gpt-4o", source="key-a"),
            _record(20, model="o3", source="key-b", route="/v1/responses"),
            _record(30, model="o3", source=""),
        ],
    )

    response = overview_service.get_overview(OverviewQuery(model="o3"))

    assert response.overview.total_requests == 2
    assert [item.model for item in response.overview.models] == ["o3"]
    assert response.filters.models == ["gpt-4o", "o3"]
    assert response.filters.routes == ["/v1/chat/completions", "/v1/responses"]
    assert response.filters.sources == ["key-a", "key-b"]
    assert response.filters.names == ["key-a", "key-b"]


def test_name_filter_matches_credential_name(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    mock_db_session.add(TestDataFactory.create_test_mapping("auth-1", "Team Alpha"))
    TestDataFactory.insert_records(
        mock_db_session,
        [
            _record(10, auth_index="auth-1"),
            _record(20, source="key-b"),
        ],
    )

    response = overview_service.get_overview(OverviewQuery(name="Team Alpha"))

    assert response.overview.total_requests == 1
    assert response.filters.names == ["Team Alpha", "key-b"]


# =============================================================================
# Model pages
# =============================================================================


def test_models_are_paged_by_name(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    TestDataFactory.insert_records(
        mock_db_session,
        TestDataFactory.create_test_records(
            14, start=NOW - timedelta(hours=1), models=MODELS
        ),
    )

    first = overview_service.get_overview(OverviewQuery(page_size=5))
    second = overview_service.get_overview(OverviewQuery(page=2, page_size=5))

    assert [item.model for item in first.overview.models] == list(MODELS[:5])
    assert [item.model for item in second.overview.models] == list(MODELS[5:])
    assert second.meta.page == 2
    assert second.meta.total_models == 7
    assert second.meta.total_pages == 2
    # Totals cover every model, not just the current page
    assert second.overview.total_requests == 14


@pytest.mark.parametrize(
    "page, page_size, expected",
    [(None, None, (1, 10)), (0, 1, (1, 5)), (-3, 10_000, (1, 500)), (4, 20, (4, 20))],
)
def test_page_parameters_are_clamped(
    overview_service: OverviewService,
    page: int | None,
    page_size: int | None,
    expected: tuple[int, int],
) -> None:
    response = overview_service.get_overview(
        OverviewQuery(page=page, page_size=page_size)
    )

    assert (response.meta.page, response.meta.page_size) == expected


# =============================================================================
# Time series
# =============================================================================


def test_series_bucket_by_day_and_hour(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    TestDataFactory.insert_records(
        mock_db_session,
        [
            _record(60 * 24),
            _record(60 * 24 - 30, is_error=True),
            _record(120),
        ],
    )

    overview = overview_service.get_overview(OverviewQuery()).overview

    assert [(p.label, p.requests, p.errors) for p in overview.by_day] == [
        ("2026-01-14", 2, 1),
        ("2026-01-15", 1, 0),
    ]
    assert [(p.label, p.requests) for p in overview.by_hour] == [
        ("01-14 12", 2),
        ("01-15 10", 1),
    ]
    assert overview.by_hour[0].timestamp == datetime(2026, 1, 14, 12, tzinfo=UTC)
    assert overview.by_hour[0].tokens == 2400


def test_repeated_hour_of_dst_fall_back_stays_two_buckets(
    usage_record_repo: UsageRecordRepository,
    overview_cache: TTLCache[OverviewResponse],
    mock_db_session: Session,
) -> None:
    """Test 01:30 EDT and 01:30 EST on 2025-11-02 land in separate hours."""
    settings = Settings(
        environment=Environment.TESTING, timezone="America/New_York"
    )
    service = OverviewService(
        usage_record_repo, overview_cache, settings, now=lambda: NOW
    )
    TestDataFactory.insert_records(
        mock_db_session,
        [
            TestDataFactory.create_test_record(
                occurred_at=datetime(2025, 11, 2, 5, 30, tzinfo=UTC)
            ),
            TestDataFactory.create_test_record(
                occurred_at=datetime(2025, 11, 2, 6, 30, tzinfo=UTC)
            ),
        ],
    )
    day = datetime(2025, 11, 2, 12, tzinfo=UTC)

    response = service.get_overview(OverviewQuery(start=day, end=day))

    assert response.days == 1
    assert response.timezone == "America/New_York"
    assert [(p.label, p.requests) for p in response.overview.by_day] == [
        ("2025-11-02", 2)
    ]
    assert [p.label for p in response.overview.by_hour] == ["11-02 01", "11-02 01"]
    assert [p.timestamp for p in response.overview.by_hour] == [
        datetime(2025, 11, 2, 5, tzinfo=UTC),
        datetime(2025, 11, 2, 6, tzinfo=UTC),
    ]


def test_inverted_window_is_rejected(overview_service: OverviewService) -> None:
    query = OverviewQuery(
        start=datetime(2026, 1, 12, tzinfo=UTC),
        end=datetime(2026, 1, 10, tzinfo=UTC),
    )

    with pytest.raises(InvalidParameterError):
        overview_service.get_overview(query)


# =============================================================================
# Caching
# =============================================================================


def test_repeat_request_is_served_from_cache(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    TestDataFactory.insert_records(mock_db_session, [_record(10)])
    first = overview_service.get_overview(OverviewQuery())

    TestDataFactory.insert_records(mock_db_session, [_record(20)])
    cached = overview_service.get_overview(OverviewQuery())
    fresh = overview_service.get_overview(OverviewQuery(), skip_cache=True)

    assert cached is first
    assert cached.overview.total_requests == 1
    assert fresh.overview.total_requests == 2
    # The recomputed result replaces the cached one
    assert overview_service.get_overview(OverviewQuery()) is fresh


def test_different_pages_are_cached_separately(
    overview_service: OverviewService,
    overview_cache: TTLCache[OverviewResponse],
) -> None:
    overview_service.get_overview(OverviewQuery(page=1))
    overview_service.get_overview(OverviewQuery(page=2))

    assert len(overview_cache) == 2


# =============================================================================
# Channels
# =============================================================================


def test_channels_aggregate_by_credential(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    mock_db_session.add(TestDataFactory.create_test_price("gpt-4o"))
    TestDataFactory.insert_records(
        mock_db_session,
        [
            _record(10, source="key-a"),
            _record(20, source="key-a", is_error=True),
            _record(30, source="key-b", model="unpriced"),
            _record(60 * 24 * 20, source="key-c"),
        ],
    )

    response = overview_service.get_channels(ChannelQuery())

    assert response.days == 14
    assert [item.channel for item in response.channels] == ["key-a", "key-b"]
    key_a = response.channels[0]
    assert key_a.requests == 2
    assert key_a.error_count == 1
    assert key_a.total_tokens == 2400
    assert key_a.cost == pytest.approx(0.009)
    assert response.channels[1].cost == 0.0


def test_channels_window_follows_days(
    overview_service: OverviewService, mock_db_session: Session
) -> None:
    TestDataFactory.insert_records(
        mock_db_session,
        [_record(10, source="key-a"), _record(60 * 24 * 3, source="key-b")],
    )

    response = overview_service.get_channels(ChannelQuery(days=2))

    assert response.days == 2
    assert [item.channel for item in response.channels] == ["key-a"]
