"""Overview service: usage totals, per-model aggregates, time series and channels."""

import math
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, tzinfo
from typing import Any

from core import get_logger
from core.cache import TTLCache, build_cache_key
from core.config import Settings
from core.database.repository import UsageRecordRepository
from core.models.api.responses import (
    ChannelListResponse,
    ChannelUsageItem,
    DailyUsagePoint,
    HourlyUsagePoint,
    ModelUsageItem,
    OverviewFilterOptions,
    OverviewMeta,
    OverviewResponse,
    UsageOverview,
)
from core.models.domain.query import (
    OVERVIEW_CACHE_FIELDS,
    ChannelQuery,
    OverviewQuery,
    UsageFilter,
    clamp,
)
from core.services.window import TimeWindow, resolve_window
from core.utils import to_utc, utc_now

logger = get_logger(__name__)

UNKNOWN_CREDENTIAL_NAME = "-"
MODEL_COST_DIGITS = 6
SERIES_COST_DIGITS = 4


def _int(value: Any) -> int:
    return int(value or 0)


def _cost(value: Any, digits: int) -> float:
    return round(float(value or 0.0), digits)


class _Bucket:
    """Running sums for one series bucket."""

    __slots__ = (
        "requests",
        "errors",
        "tokens",
        "input_tokens",
        "output_tokens",
        "reasoning_tokens",
        "cached_tokens",
        "cost",
    )

    def __init__(self) -> None:
        self.requests = 0
        self.errors = 0
        self.tokens = 0
        self.input_tokens = 0
        self.output_tokens = 0
        self.reasoning_tokens = 0
        self.cached_tokens = 0
        self.cost = 0.0

    def add(self, row: Any) -> None:
        self.requests += 1
        self.errors += 1 if row.is_error else 0
        self.tokens += _int(row.total_tokens)
        self.input_tokens += _int(row.input_tokens)
        self.output_tokens += _int(row.output_tokens)
        self.reasoning_tokens += _int(row.reasoning_tokens)
        self.cached_tokens += _int(row.cached_tokens)
        self.cost += float(row.cost or 0.0)


def bucket_usage(
    rows: Iterable[Any], tz: tzinfo
) -> tuple[list[DailyUsagePoint], list[HourlyUsagePoint]]:
    """Group per-record usage into local calendar days and local clock hours.

    Hours are keyed by their UTC start so the repeated wall-clock hour of a
    DST fall-back stays two buckets.

    Returns:
        Daily and hourly points, both in ascending time order
    """
    days: dict[str, _Bucket] = {}
    hours: dict[datetime, _Bucket] = {}

    for row in rows:
        local = to_utc(row.occurred_at).astimezone(tz)
        days.setdefault(local.strftime("%Y-%m-%d"), _Bucket()).add(row)
        hour_start = local.replace(minute=0, second=0, microsecond=0).astimezone(UTC)
        hours.setdefault(hour_start, _Bucket()).add(row)

    by_day = [
        DailyUsagePoint(
            label=label,
            requests=bucket.requests,
            errors=bucket.errors,
            tokens=bucket.tokens,
            cost=round(bucket.cost, SERIES_COST_DIGITS),
        )
        for label, bucket in sorted(days.items())
    ]
    by_hour = [
        HourlyUsagePoint(
            label=hour_start.astimezone(tz).strftime("%m-%d %H"),
            timestamp=hour_start,
            requests=bucket.requests,
            tokens=bucket.tokens,
            input_tokens=bucket.input_tokens,
            output_tokens=bucket.output_tokens,
            reasoning_tokens=bucket.reasoning_tokens,
            cached_tokens=bucket.cached_tokens,
        )
        for hour_start, bucket in sorted(hours.items())
    ]
    return by_day, by_hour


class OverviewService:
    """Service answering overview and channel requests."""

    def __init__(
        self,
        repository: UsageRecordRepository,
        cache: TTLCache[OverviewResponse],
        settings: Settings,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.settings = settings
        self._now = now

    def resolve_window(
        self, days: int | None, start: datetime | None, end: datetime | None
    ) -> TimeWindow:
        """Resolve window parameters with the overview defaults.

        Raises:
            InvalidParameterError: If ``end`` lies before ``start``
        """
        return resolve_window(
            days,
            start,
            end,
            default_days=self.settings.overview_default_days,
            max_days=self.settings.overview_max_days,
            tz=self.settings.tzinfo,
            now=self._now(),
        )

    def _filter_options(self, window: UsageFilter) -> OverviewFilterOptions:
        limit = self.settings.filter_values_limit
        values = {
            column: [
                value
                for value in self.repository.distinct_values(column, window, limit=limit)
                if value
            ]
            for column in ("model", "route", "source")
        }
        names = self.repository.distinct_credential_names(window, limit=limit)
        return OverviewFilterOptions(
            models=values["model"],
            routes=values["route"],
            sources=values["source"],
            names=[name for name in names if name and name != UNKNOWN_CREDENTIAL_NAME],
        )

    def _compute(self, query: OverviewQuery) -> OverviewResponse:
        window = self.resolve_window(query.days, query.start, query.end)
        page = max(query.page or 1, 1)
        page_size = clamp(
            query.page_size,
            default=self.settings.overview_default_page_size,
            minimum=self.settings.overview_min_page_size,
            maximum=self.settings.overview_max_page_size,
        )

        usage_filter = UsageFilter(
            start=window.since,
            end=window.until,
            model=query.model,
            route=query.route,
            source=query.source,
            name=query.name,
        )

        totals = self.repository.usage_totals(usage_filter)
        total_requests = _int(totals.requests)
        failure_count = _int(totals.errors)
        success_count = total_requests - failure_count

        models = [
            ModelUsageItem(
                model=row.model,
                requests=_int(row.requests),
                tokens=_int(row.total_tokens),
                input_tokens=_int(row.input_tokens),
                output_tokens=_int(row.output_tokens),
                reasoning_tokens=_int(row.reasoning_tokens),
                cached_tokens=_int(row.cached_tokens),
                cost=_cost(row.cost, MODEL_COST_DIGITS),
            )
            for row in self.repository.model_usage(
                usage_filter, limit=page_size, offset=(page - 1) * page_size
            )
        ]
        total_models = self.repository.count_models(usage_filter)
        by_day, by_hour = bucket_usage(
            self.repository.usage_rows(usage_filter), self.settings.tzinfo
        )

        overview = UsageOverview(
            total_requests=total_requests,
            total_tokens=_int(totals.total_tokens),
            total_input_tokens=_int(totals.input_tokens),
            total_output_tokens=_int(totals.output_tokens),
            total_reasoning_tokens=_int(totals.reasoning_tokens),
            total_cached_tokens=_int(totals.cached_tokens),
            success_count=success_count,
            failure_count=failure_count,
            success_rate=success_count / total_requests if total_requests else 1.0,
            total_cost=_cost(totals.cost, SERIES_COST_DIGITS),
            models=models,
            by_day=by_day,
            by_hour=by_hour,
        )
        return OverviewResponse(
            overview=overview,
            empty=total_requests == 0,
            days=window.days,
            meta=OverviewMeta(
                page=page,
                page_size=page_size,
                total_models=total_models,
                total_pages=max(1, math.ceil(total_models / page_size)),
            ),
            filters=self._filter_options(usage_filter.window_only()),
            timezone=self.settings.timezone,
        )

    def get_overview(
        self, query: OverviewQuery, skip_cache: bool = False
    ) -> OverviewResponse:
        """Get the usage overview of a window, serving repeats from the cache.

        Args:
            query: Window, filters and models page as supplied by the client
            skip_cache: Recompute even when a live cached result exists; the
                fresh result still replaces the cached one

        Returns:
            Totals, one page of per-model aggregates, daily and hourly series

        Raises:
            InvalidParameterError: If the window is inverted
            DataSourceError: If a database query fails
        """
        key = build_cache_key(query.cache_params(), OVERVIEW_CACHE_FIELDS)

        if not skip_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Overview cache hit: {key}")
                return cached

        response = self._compute(query)
        self.cache.set(key, response)
        logger.info(
            f"Overview computed: days={response.days} "
            f"requests={response.overview.total_requests} "
            f"models={response.meta.total_models}"
        )
        return response

    def get_channels(self, query: ChannelQuery) -> ChannelListResponse:
        """Get usage per credential for a window, busiest first."""
        window = self.resolve_window(query.days, query.start, query.end)
        rows = self.repository.channel_usage(
            UsageFilter(start=window.since, end=window.until)
        )
        channels = [
            ChannelUsageItem(
                channel=row.channel,
                requests=_int(row.requests),
                total_tokens=_int(row.total_tokens),
                input_tokens=_int(row.input_tokens),
                output_tokens=_int(row.output_tokens),
                reasoning_tokens=_int(row.reasoning_tokens),
                cached_tokens=_int(row.cached_tokens),
                error_count=_int(row.errors),
                cost=_cost(row.cost, SERIES_COST_DIGITS),
            )
            for row in rows
        ]
        return ChannelListResponse(channels=channels, days=window.days)
