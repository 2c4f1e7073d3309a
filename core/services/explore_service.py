"""Explore service: down-sampled scatter points for a time window."""

import math
from collections.abc import Callable
from datetime import datetime

from core import get_logger
from core.cache import TTLCache, build_cache_key
from core.config import Settings
from core.database.repository import UsageRecordRepository
from core.models.api.responses import (
    ExploreFilterOptions,
    ExplorePoint,
    ExploreResponse,
)
from core.models.domain.query import (
    EXPLORE_CACHE_FIELDS,
    ExploreQuery,
    UsageFilter,
    clamp,
)
from core.services.window import TimeWindow, resolve_window
from core.utils import to_epoch_millis, utc_now

logger = get_logger(__name__)

UNKNOWN_CREDENTIAL_NAME = "-"


def compute_step(total: int, max_points: int) -> int:
    """Get the sampling stride that keeps at most ``max_points`` rows."""
    if total > max_points:
        return math.ceil(total / max_points)
    return 1


class ExploreService:
    """Service answering explore requests through a shared TTL cache."""

    def __init__(
        self,
        repository: UsageRecordRepository,
        cache: TTLCache[ExploreResponse],
        settings: Settings,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.settings = settings
        self._now = now

    def resolve_window(self, query: ExploreQuery) -> TimeWindow:
        """Resolve the requested window into ``(days, since, until)``.

        Raises:
            InvalidParameterError: If ``end`` lies before ``start``
        """
        return resolve_window(
            query.days,
            query.start,
            query.end,
            default_days=self.settings.explore_default_days,
            max_days=self.settings.explore_max_days,
            tz=self.settings.tzinfo,
            now=self._now(),
        )

    def _filter_options(self, window: UsageFilter) -> ExploreFilterOptions:
        limit = self.settings.filter_values_limit
        routes = self.repository.distinct_values("route", window, limit=limit)
        names = self.repository.distinct_credential_names(window, limit=limit)
        return ExploreFilterOptions(
            routes=[route for route in routes if route],
            names=[name for name in names if name and name != UNKNOWN_CREDENTIAL_NAME],
        )

    def _compute(self, query: ExploreQuery) -> ExploreResponse:
        days, since, until = self.resolve_window(query)
        max_points = clamp(
            query.max_points,
            default=self.settings.explore_default_max_points,
            minimum=self.settings.explore_min_max_points,
            maximum=self.settings.explore_max_max_points,
        )

        usage_filter = UsageFilter(
            start=since, end=until, route=query.route, name=query.name
        )
        filters = self._filter_options(usage_filter.window_only())
        total = self.repository.count_matching(usage_filter)

        if total <= 0:
            return ExploreResponse(
                days=days, total=0, returned=0, step=1, points=[], filters=filters
            )

        step = compute_step(total, max_points)
        rows = self.repository.sample_points(usage_filter, step, max_points)
        points = [
            ExplorePoint(
                ts=to_epoch_millis(row.occurred_at),
                tokens=row.total_tokens,
                input_tokens=row.input_tokens,
                output_tokens=row.output_tokens,
                reasoning_tokens=row.reasoning_tokens,
                cached_tokens=row.cached_tokens,
                model=row.model,
            )
            for row in rows
        ]
        return ExploreResponse(
            days=days,
            total=total,
            returned=len(points),
            step=step,
            points=points,
            filters=filters,
        )

    def get_points(self, query: ExploreQuery, skip_cache: bool = False) -> ExploreResponse:
        """Get sampled points for a window, serving repeats from the cache.

        Args:
            query: Window, point budget and filters as supplied by the client
            skip_cache: Recompute even when a live cached result exists; the
                fresh result still replaces the cached one

        Returns:
            Explore response with at most the resolved point budget

        Raises:
            InvalidParameterError: If the window is inverted
            DataSourceError: If a database query fails
        """
        key = build_cache_key(query.cache_params(), EXPLORE_CACHE_FIELDS)

        if not skip_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Explore cache hit: {key}")
                return cached

        response = self._compute(query)
        self.cache.set(key, response)
        logger.info(
            f"Explore computed: days={response.days} total={response.total} "
            f"step={response.step} returned={response.returned}"
        )
        return response
