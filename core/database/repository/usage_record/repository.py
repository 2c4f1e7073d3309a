"""Read-side repository for usage records."""

from __future__ import annotations

from typing import Any

from sqlmodel import Session

from core.database.repository.base import BaseRepository
from core.log import get_logger
from core.models.domain.cursor import RecordCursor
from core.models.domain.query import SortSpec, UsageFilter
from core.models.rows import UsageRecord

from .query_builders import UsageRecordQueryBuilder

logger = get_logger(__name__)

DISTINCT_COLUMNS = {
    "model": UsageRecord.model,
    "route": UsageRecord.route,
    "source": UsageRecord.source,
}


class UsageRecordRepository(BaseRepository[UsageRecord]):
    """Repository for UsageRecord queries."""

    def __init__(self, db: Session) -> None:
        super().__init__(UsageRecord, db)
        self.query_builder = UsageRecordQueryBuilder()

    def fetch_page(
        self,
        usage_filter: UsageFilter,
        sort: SortSpec,
        cursor: RecordCursor | None = None,
        limit: int = 50,
    ) -> list[tuple[UsageRecord, float]]:
        """Fetch records in keyset order together with their derived cost.

        Args:
            usage_filter: Filter to apply
            sort: Primary ordering; ties are broken by ascending id
            cursor: Position to resume after, if any
            limit: Maximum number of rows to return

        Returns:
            List of (record, cost) tuples
        """
        statement = self.query_builder.build_page_query(
            usage_filter, sort, cursor=cursor, limit=limit
        )
        rows = self._fetch_all(statement, "Fetch usage records")
        return [(record, float(cost or 0.0)) for record, cost in rows]

    def count_matching(self, usage_filter: UsageFilter) -> int:
        """Count records matching a filter."""
        statement = self.query_builder.build_count_query(usage_filter)
        return int(self._fetch_one(statement, "Count usage records") or 0)

    def distinct_values(
        self,
        column: str,
        usage_filter: UsageFilter | None = None,
        limit: int = 200,
    ) -> list[str]:
        """Get sorted distinct values of a text column.

        Args:
            column: One of ``model``, ``route`` or ``source``
            usage_filter: Optional filter restricting the records considered
            limit: Maximum number of values to return

        Returns:
            Ascending list of distinct values
        """
        if column not in DISTINCT_COLUMNS:
            raise ValueError(f"Unsupported distinct column: {column}")
        statement = self.query_builder.build_distinct_query(
            DISTINCT_COLUMNS[column], usage_filter, limit=limit
        )
        values = self._fetch_all(statement, f"Distinct {column} values")
        return [value for value in values if value is not None]

    def distinct_credential_names(
        self, usage_filter: UsageFilter | None = None, limit: int = 200
    ) -> list[str]:
        """Get sorted distinct credential names of the matching records."""
        statement = self.query_builder.build_distinct_query(
            self.query_builder.credential_name_expression(),
            usage_filter,
            limit=limit,
        )
        values = self._fetch_all(statement, "Distinct credential names")
        return [value for value in values if value is not None]

    def sample_points(
        self, usage_filter: UsageFilter, step: int, max_points: int
    ) -> list[Any]:
        """Fetch every ``step``-th matching record in time order.

        Returns:
            Rows exposing ``occurred_at``, the token counts and ``model``
        """
        if step < 1:
            raise ValueError("step must be at least 1")
        statement = self.query_builder.build_sample_query(
            usage_filter, step=step, max_points=max_points
        )
        rows = self._fetch_all(statement, "Sample usage records")
        logger.debug(f"Sampled {len(rows)} usage records with step {step}")
        return list(rows)

    def usage_totals(self, usage_filter: UsageFilter) -> Any:
        """Get request, token, error and cost totals of the matching records.

        Returns:
            Row with ``requests``, the ``*_tokens`` sums, ``errors`` and ``cost``
        """
        statement = self.query_builder.build_totals_query(usage_filter)
        return self._fetch_one(statement, "Usage totals")

    def model_usage(
        self, usage_filter: UsageFilter, limit: int, offset: int = 0
    ) -> list[Any]:
        """Get one page of per-model aggregates ordered by model name."""
        statement = self.query_builder.build_model_usage_query(
            usage_filter, limit=limit, offset=offset
        )
        return list(self._fetch_all(statement, "Usage by model"))

    def count_models(self, usage_filter: UsageFilter) -> int:
        """Count distinct models among the matching records."""
        statement = self.query_builder.build_model_count_query(usage_filter)
        return int(self._fetch_one(statement, "Count models") or 0)

    def usage_rows(self, usage_filter: UsageFilter) -> list[Any]:
        """Get time, token counts, error flag and cost of matching records.

        Rows come in ``(occurred_at, id)`` order.
        """
        statement = self.query_builder.build_usage_rows_query(usage_filter)
        rows = self._fetch_all(statement, "Usage rows")
        logger.debug(f"Fetched {len(rows)} usage rows for bucketing")
        return list(rows)

    def channel_usage(self, usage_filter: UsageFilter) -> list[Any]:
        """Get per-credential aggregates, busiest credential first."""
        statement = self.query_builder.build_channel_usage_query(usage_filter)
        return list(self._fetch_all(statement, "Usage by channel"))
