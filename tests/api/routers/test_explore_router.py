"""Tests for the explore router."""

from datetime import timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlmodel import Session

from core.cache import TTLCache
from core.models.api.responses import ExploreResponse
from core.utils import utc_now
from tests.utils.test_helpers import TestDataFactory


def _seed_recent(session: Session, count: int) -> None:
    TestDataFactory.insert_records(
        session,
        TestDataFactory.create_test_records(
            count, start=utc_now() - timedelta(days=5), interval=timedelta(seconds=30)
        ),
    )


def test_explore_downsamples(client: TestClient, mock_db_session: Session) -> None:
    _seed_recent(mock_db_session, 1_000)

    response = client.get("/v1/explore", params={"days": 7, "maxPoints": 50})

    assert response.status_code == 200
    data = response.json()
    assert data["days"] == 7
    assert data["total"] == 1_000
    assert data["step"] == 20
    assert data["returned"] == 50
    point = data["points"][0]
    assert set(point) == {
        "ts",
        "tokens",
        "inputTokens",
        "outputTokens",
        "reasoningTokens",
        "cachedTokens",
        "model",
    }
    assert data["filters"]["routes"] == ["/v1/chat/completions", "/v1/messages"]


def test_explore_second_call_is_cached(
    client: TestClient,
    mock_db_session: Session,
    explore_cache: TTLCache[ExploreResponse],
) -> None:
    _seed_recent(mock_db_session, 10)
    params = {"days": 7, "maxPoints": 50}

    first = client.get("/v1/explore", params=params).json()
    assert len(explore_cache) == 1

    with patch.object(Session, "exec", side_effect=AssertionError("queried")):
        second = client.get("/v1/explore", params=params)

    assert second.status_code == 200
    assert second.json() == first


def test_skip_cache_bypasses_cached_result(
    client: TestClient,
    mock_db_session: Session,
) -> None:
    _seed_recent(mock_db_session, 10)
    params = {"days": 7}
    client.get("/v1/explore", params=params)

    TestDataFactory.insert_records(
        mock_db_session,
        [TestDataFactory.create_test_record(occurred_at=utc_now(), source="late")],
    )

    assert client.get("/v1/explore", params=params).json()["total"] == 10
    refreshed = client.get("/v1/explore", params={**params, "skipCache": "1"})
    assert refreshed.json()["total"] == 11
    assert client.get("/v1/explore", params=params).json()["total"] == 11


def test_inverted_range_returns_400(client: TestClient) -> None:
    response = client.get(
        "/v1/explore", params={"start": "2026-01-12", "end": "2026-01-10"}
    )

    assert response.status_code == 400


def test_non_numeric_days_returns_422(client: TestClient) -> None:
    response = client.get("/v1/explore", params={"days": "a week"})

    assert response.status_code == 422
