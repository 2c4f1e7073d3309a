"""Tests for the records router."""

from collections.abc import Callable
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from core.models.rows import UsageRecord
from tests.utils.test_helpers import TestDataFactory


def test_records_use_camel_case(
    client: TestClient,
    seed_records: Callable[..., list[UsageRecord]],
    mock_db_session: Session,
) -> None:
    mock_db_session.add(TestDataFactory.create_test_price("gpt-4o"))
    mock_db_session.commit()
    seed_records(1)

    response = client.get("/v1/records")

    assert response.status_code == 200
    data = response.json()
    assert data["nextCursor"] is None
    assert "filters" not in data or data["filters"] is None
    item = data["items"][0]
    assert set(item) == {
        "id",
        "occurredAt",
        "model",
        "route",
        "source",
        "totalTokens",
        "inputTokens",
        "outputTokens",
        "reasoningTokens",
        "cachedTokens",
        "cost",
        "isError",
    }
    assert item["model"] == "gpt-4o"
    assert item["cost"] > 0
    assert item["occurredAt"].startswith("2026-01-15T12:00:00")


def test_records_follow_next_cursor(
    client: TestClient, seed_records: Callable[..., list[UsageRecord]]
) -> None:
    records = seed_records(250)
    seen: list[int] = []
    sizes: list[int] = []
    params: dict[str, str] = {"limit": "100", "sortField": "occurredAt", "sortOrder": "asc"}

    while True:
        response = client.get("/v1/records", params=params)
        assert response.status_code == 200
        data = response.json()
        sizes.append(len(data["items"]))
        seen.extend(item["id"] for item in data["items"])
        if data["nextCursor"] is None:
            break
        params["cursor"] = data["nextCursor"]

    assert sizes == [100, 100, 50]
    assert seen == [record.id for record in records]


def test_records_include_filters_and_total(
    client: TestClient, seed_records: Callable[..., list[UsageRecord]]
) -> None:
    seed_records(6, models=["o3", "gpt-4o"])

    response = client.get(
        "/v1/records",
        params={"model": "o3", "includeFilters": "1", "includeTotal": "true"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["filters"]["models"] == ["gpt-4o", "o3"]
    assert data["filters"]["sources"] == ["key-a", "key-b"]


def test_flags_other_than_one_or_true_are_off(
    client: TestClient, seed_records: Callable[..., list[UsageRecord]]
) -> None:
    seed_records(2)

    data = client.get(
        "/v1/records", params={"includeFilters": "yes", "includeTotal": "0"}
    ).json()

    assert data.get("filters") is None
    assert data.get("total") is None


def test_empty_filter_values_are_ignored(
    client: TestClient, seed_records: Callable[..., list[UsageRecord]]
) -> None:
    seed_records(4)

    response = client.get(
        "/v1/records", params={"model": "", "route": "", "source": ""}
    )

    assert response.status_code == 200
    assert len(response.json()["items"]) == 4


def test_invalid_cursor_returns_400(client: TestClient) -> None:
    response = client.get("/v1/records", params={"cursor": "garbage!!"})

    assert response.status_code == 400
    assert "Cursor" in response.json()["detail"]


def test_unknown_sort_field_returns_400(client: TestClient) -> None:
    response = client.get("/v1/records", params={"sortField": "price"})

    assert response.status_code == 400
    assert "sortField" in response.json()["detail"]


def test_invalid_timestamp_returns_400(client: TestClient) -> None:
    response = client.get("/v1/records", params={"start": "last week"})

    assert response.status_code == 400


def test_non_numeric_limit_returns_422(client: TestClient) -> None:
    response = client.get("/v1/records", params={"limit": "ten"})

    assert response.status_code == 422


def test_data_source_failure_returns_503(client: TestClient) -> None:
    failure = OperationalError("SELECT", {}, Exception("no such table: usage_records"))

    with patch.object(Session, "exec", side_effect=failure):
        response = client.get("/v1/records")

    assert response.status_code == 503
    assert response.json() == {"detail": "Data source unavailable"}


@pytest.mark.parametrize("sort_field", ["cost", "isError"])
def test_cursor_walk_by_cost_and_error_flag(
    client: TestClient,
    seed_records: Callable[..., list[UsageRecord]],
    mock_db_session: Session,
    sort_field: str,
) -> None:
    mock_db_session.add(TestDataFactory.create_test_price("gpt-4o"))
    mock_db_session.add(
        TestDataFactory.create_test_price("gpt-*", input_price_per_1m=9.0)
    )
    mock_db_session.add(TestDataFactory.create_test_price("claude-*"))
    mock_db_session.commit()
    records = seed_records(30)
    seen: list[int] = []
    params: dict[str, str] = {"limit": "7", "sortField": sort_field}

    while True:
        response = client.get("/v1/records", params=params)
        assert response.status_code == 200
        data = response.json()
        seen.extend(item["id"] for item in data["items"])
        if data["nextCursor"] is None:
            break
        params["cursor"] = data["nextCursor"]

    assert sorted(seen) == sorted(record.id for record in records)
    assert len(seen) == len(set(seen))
