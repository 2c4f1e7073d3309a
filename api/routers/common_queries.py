"""Common Query parameters for API endpoints."""

from fastapi import Query

from core.models.domain.query import (
    ChannelQuery,
    ExploreQuery,
    OverviewQuery,
    RecordQuery,
    SortSpec,
    UsageFilter,
    optional_text,
    parse_timestamp_param,
)

TRUTHY_FLAGS = {"1", "true"}


def parse_flag(value: str | None) -> bool:
    """Interpret a query flag; only "1" and "true" switch it on."""
    return value is not None and value.strip().lower() in TRUTHY_FLAGS


def get_record_query(
    limit: int | None = Query(default=None, description="Number of records to return"),
    sort_field: str | None = Query(
        default=None, alias="sortField", description="Field to order records by"
    ),
    sort_order: str | None = Query(
        default=None, alias="sortOrder", description="Sort direction (asc/desc)"
    ),
    cursor: str | None = Query(
        default=None, description="Continuation token from a previous page"
    ),
    model: str | None = Query(default=None, description="Exact model name"),
    route: str | None = Query(default=None, description="Exact route"),
    source: str | None = Query(default=None, description="Exact source identifier"),
    start: str | None = Query(default=None, description="Inclusive lower time bound"),
    end: str | None = Query(default=None, description="Inclusive upper time bound"),
    include_filters: str | None = Query(
        default=None, alias="includeFilters", description="Return filter options"
    ),
    include_total: str | None = Query(
        default=None, alias="includeTotal", description="Return the match count"
    ),
) -> RecordQuery:
    """Get records query parameters.

    Raises:
        InvalidParameterError: If the sort or a timestamp cannot be interpreted
    """
    return RecordQuery(
        filter=UsageFilter(
            model=optional_text(model),
            route=optional_text(route),
            source=optional_text(source),
            start=parse_timestamp_param("start", start),
            end=parse_timestamp_param("end", end),
        ),
        sort=SortSpec.parse(sort_field, sort_order),
        cursor=optional_text(cursor),
        limit=limit,
        include_filters=parse_flag(include_filters),
        include_total=parse_flag(include_total),
    )


def get_explore_query(
    days: int | None = Query(default=None, description="Trailing window in days"),
    max_points: int | None = Query(
        default=None, alias="maxPoints", description="Maximum points to return"
    ),
    start: str | None = Query(default=None, description="First calendar day"),
    end: str | None = Query(default=None, description="Last calendar day"),
    route: str | None = Query(default=None, description="Exact route"),
    name: str | None = Query(default=None, description="Exact credential name"),
) -> ExploreQuery:
    """Get explore query parameters.

    Raises:
        InvalidParameterError: If a timestamp cannot be interpreted
    """
    return ExploreQuery(
        days=days,
        max_points=max_points,
        start=parse_timestamp_param("start", start),
        end=parse_timestamp_param("end", end),
        route=optional_text(route),
        name=optional_text(name),
    )


def get_skip_cache_param(
    skip_cache: str | None = Query(
        default=None, alias="skipCache", description="Bypass the cached result"
    ),
) -> bool:
    """Get skip cache parameter."""
    return parse_flag(skip_cache)


def get_overview_query(
    days: int | None = Query(default=None, description="Trailing window in days"),
    start: str | None = Query(default=None, description="First calendar day"),
    end: str | None = Query(default=None, description="Last calendar day"),
    model: str | None = Query(default=None, description="Exact model name"),
    route: str | None = Query(default=None, description="Exact route"),
    source: str | None = Query(default=None, description="Exact source identifier"),
    name: str | None = Query(default=None, description="Exact credential name"),
    page: int | None = Query(default=None, description="Page of the model list"),
    page_size: int | None = Query(
        default=None, alias="pageSize", description="Models per page"
    ),
) -> OverviewQuery:
    """Get overview query parameters.

    Raises:
        InvalidParameterError: If a timestamp cannot be interpreted
    """
    return OverviewQuery(
        days=days,
        start=parse_timestamp_param("start", start),
        end=parse_timestamp_param("end", end),
        model=optional_text(model),
        route=optional_text(route),
        source=optional_text(source),
        name=optional_text(name),
        page=page,
        page_size=page_size,
    )


def get_channel_query(
    days: int | None = Query(default=None, description="Trailing window in days"),
    start: str | None = Query(default=None, description="First calendar day"),
    end: str | None = Query(default=None, description="Last calendar day"),
) -> ChannelQuery:
    """Get channel query parameters."""
    return ChannelQuery(
        days=days,
        start=parse_timestamp_param("start", start),
        end=parse_timestamp_param("end", end),
    )
