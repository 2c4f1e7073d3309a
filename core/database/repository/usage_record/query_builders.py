"""Query builders for usage record repository operations."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Float, Integer, and_, case, cast, func, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import col, select
from sqlmodel.sql._expression_select_cls import Select, SelectOfScalar

from core.models.domain.cursor import RecordCursor
from core.models.domain.query import SortSpec, UsageFilter
from core.models.rows import AuthFileMapping, ModelPrice, UsageRecord
from core.types import SortField, SortOrder

TOKENS_PER_PRICE_UNIT = 1_000_000.0
UNKNOWN_CREDENTIAL_NAME = "-"
LIKE_ESCAPE = "\\"

SORT_COLUMNS: dict[SortField, Any] = {
    SortField.OCCURRED_AT: UsageRecord.occurred_at,
    SortField.MODEL: UsageRecord.model,
    SortField.ROUTE: UsageRecord.route,
    SortField.SOURCE: UsageRecord.source,
    SortField.TOTAL_TOKENS: UsageRecord.total_tokens,
    SortField.INPUT_TOKENS: UsageRecord.input_tokens,
    SortField.OUTPUT_TOKENS: UsageRecord.output_tokens,
    SortField.REASONING_TOKENS: UsageRecord.reasoning_tokens,
    SortField.CACHED_TOKENS: UsageRecord.cached_tokens,
    SortField.IS_ERROR: UsageRecord.is_error,
}


def price_pattern_expression() -> ColumnElement[str]:
    """Turn a stored price model into a LIKE pattern.

    Only ``*`` is a wildcard; literal ``%``, ``_`` and the escape character
    are escaped with ``LIKE_ESCAPE``.
    """
    pattern: Any = col(ModelPrice.model)
    for char in (LIKE_ESCAPE, "%", "_"):
        pattern = func.replace(pattern, char, LIKE_ESCAPE + char)
    return func.replace(pattern, "*", "%")


class UsageRecordQueryBuilder:
    """Builder for usage record queries: filters, keyset pagination, sampling."""

    @staticmethod
    def _price_cost_terms() -> ColumnElement[float]:
        uncached_input = case(
            (
                col(UsageRecord.input_tokens) > col(UsageRecord.cached_tokens),
                col(UsageRecord.input_tokens) - col(UsageRecord.cached_tokens),
            ),
            else_=0,
        )
        return (
            cast(uncached_input, Float)
            / TOKENS_PER_PRICE_UNIT
            * col(ModelPrice.input_price_per_1m)
            + cast(col(UsageRecord.cached_tokens), Float)
            / TOKENS_PER_PRICE_UNIT
            * col(ModelPrice.cached_input_price_per_1m)
            + cast(
                col(UsageRecord.output_tokens) + col(UsageRecord.reasoning_tokens),
                Float,
            )
            / TOKENS_PER_PRICE_UNIT
            * col(ModelPrice.output_price_per_1m)
        )

    def cost_expression(self) -> ColumnElement[float]:
        """Build the per-record cost derived from the best matching price.

        An exact model match wins over wildcard patterns; among patterns the
        longest one wins. Records without any matching price cost 0.

        The two lookups are separate correlated subqueries so that neither
        ORDER BY refers to the outer record, which SQLite cannot resolve.
        """
        exact_price = (
            select(self._price_cost_terms())
            .where(col(ModelPrice.model) == col(UsageRecord.model))
            .limit(1)
            .correlate(UsageRecord)
            .scalar_subquery()
        )
        pattern_price = (
            select(self._price_cost_terms())
            .where(
                col(ModelPrice.model).contains("*"),
                col(UsageRecord.model).ilike(
                    price_pattern_expression(), escape=LIKE_ESCAPE
                ),
            )
            .order_by(
                func.length(col(ModelPrice.model)).desc(),
                col(ModelPrice.model).asc(),
            )
            .limit(1)
            .correlate(UsageRecord)
            .scalar_subquery()
        )
        return func.coalesce(exact_price, pattern_price, 0.0)

    def credential_name_expression(self) -> ColumnElement[str]:
        """Build the display name of the credential behind a record."""
        mapped_name = (
            select(AuthFileMapping.name)
            .where(col(AuthFileMapping.auth_id) == col(UsageRecord.auth_index))
            .limit(1)
            .correlate(UsageRecord)
            .scalar_subquery()
        )
        return func.coalesce(
            func.nullif(mapped_name, ""),
            func.nullif(col(UsageRecord.source), ""),
            UNKNOWN_CREDENTIAL_NAME,
        )

    def sort_expression(self, field: SortField) -> Any:
        """Get the SQL expression a sort field orders by."""
        if field == SortField.COST:
            return self.cost_expression()
        return SORT_COLUMNS[field]

    def build_filter_conditions(self, usage_filter: UsageFilter) -> list[Any]:
        """Translate a filter into AND-ed SQL conditions."""
        conditions: list[Any] = []
        if usage_filter.model is not None:
            conditions.append(col(UsageRecord.model) == usage_filter.model)
        if usage_filter.route is not None:
            conditions.append(col(UsageRecord.route) == usage_filter.route)
        if usage_filter.source is not None:
            conditions.append(col(UsageRecord.source) == usage_filter.source)
        if usage_filter.start is not None:
            conditions.append(col(UsageRecord.occurred_at) >= usage_filter.start)
        if usage_filter.end is not None:
            conditions.append(col(UsageRecord.occurred_at) <= usage_filter.end)
        if usage_filter.name is not None:
            conditions.append(self.credential_name_expression() == usage_filter.name)
        return conditions

    def build_cursor_condition(self, sort: SortSpec, cursor: RecordCursor) -> Any:
        """Build the keyset predicate selecting rows strictly after the cursor.

        Rows are ordered by the sort expression in the requested direction and
        then by id ascending, so "after" means a later sort value, or the same
        sort value with a larger id.

        Booleans are compared as 0/1 integers: SQLAlchemy only accepts
        ``=``/``!=`` against Python ``True``/``False``.
        """
        expression = self.sort_expression(sort.field)
        value = cursor.value
        if isinstance(value, bool):
            expression = cast(expression, Integer)
            value = int(value)

        if sort.order == SortOrder.ASC:
            beyond = expression > value
        else:
            beyond = expression < value
        return or_(
            beyond,
            and_(expression == value, col(UsageRecord.id) > cursor.id),
        )

    def build_page_query(
        self,
        usage_filter: UsageFilter,
        sort: SortSpec,
        cursor: RecordCursor | None = None,
        limit: int = 50,
    ) -> Select[tuple[UsageRecord, float]]:
        """Build query for one page of records with their derived cost.

        Args:
            usage_filter: Filter to apply
            sort: Primary ordering
            cursor: Position to resume after, if any
            limit: Maximum number of rows to fetch

        Returns:
            SQLAlchemy query for (UsageRecord, cost) tuples
        """
        cost = self.cost_expression().label("cost")
        sort_expression = self.sort_expression(sort.field)

        conditions = self.build_filter_conditions(usage_filter)
        if cursor is not None:
            conditions.append(self.build_cursor_condition(sort, cursor))

        primary = (
            sort_expression.asc()
            if sort.order == SortOrder.ASC
            else sort_expression.desc()
        )
        return (
            select(UsageRecord, cost)
            .where(*conditions)
            .order_by(primary, col(UsageRecord.id).asc())
            .limit(limit)
        )

    def build_count_query(self, usage_filter: UsageFilter) -> SelectOfScalar[int]:
        """Build query counting records that match a filter."""
        return (
            select(func.count())
            .select_from(UsageRecord)
            .where(*self.build_filter_conditions(usage_filter))
        )

    def build_distinct_query(
        self,
        expression: Any,
        usage_filter: UsageFilter | None = None,
        limit: int = 200,
    ) -> SelectOfScalar[str]:
        """Build query for the sorted distinct values of an expression."""
        conditions = (
            self.build_filter_conditions(usage_filter) if usage_filter else []
        )
        values = (
            select(expression.label("value"))
            .select_from(UsageRecord)
            .where(*conditions)
            .subquery("distinct_values")
        )
        return (
            select(values.c.value)
            .group_by(values.c.value)
            .order_by(values.c.value)
            .limit(limit)
        )

    def build_sample_query(
        self,
        usage_filter: UsageFilter,
        step: int,
        max_points: int,
    ) -> Select[Any]:
        """Build query keeping every ``step``-th record in time order.

        Rows are numbered by (occurred_at, id) so the sample is the same on
        every run over the same data.
        """
        row_number = (
            func.row_number()
            .over(
                order_by=(
                    col(UsageRecord.occurred_at).asc(),
                    col(UsageRecord.id).asc(),
                )
            )
            .label("rn")
        )
        sampled = (
            select(
                col(UsageRecord.occurred_at).label("occurred_at"),
                col(UsageRecord.total_tokens).label("total_tokens"),
                col(UsageRecord.input_tokens).label("input_tokens"),
                col(UsageRecord.output_tokens).label("output_tokens"),
                col(UsageRecord.reasoning_tokens).label("reasoning_tokens"),
                col(UsageRecord.cached_tokens).label("cached_tokens"),
                col(UsageRecord.model).label("model"),
                row_number,
            )
            .where(*self.build_filter_conditions(usage_filter))
            .subquery("sampled")
        )
        return (
            select(
                sampled.c.occurred_at,
                sampled.c.total_tokens,
                sampled.c.input_tokens,
                sampled.c.output_tokens,
                sampled.c.reasoning_tokens,
                sampled.c.cached_tokens,
                sampled.c.model,
            )
            .where((sampled.c.rn - 1) % step == 0)
            .order_by(sampled.c.rn)
            .limit(max_points)
        )

    # Aggregates

    @staticmethod
    def _sum(expression: Any, label: str) -> Any:
        return func.coalesce(func.sum(expression), 0).label(label)

    def _error_flag(self) -> Any:
        return case((col(UsageRecord.is_error), 1), else_=0)

    def _token_sums(self) -> list[Any]:
        return [
            func.count().label("requests"),
            self._sum(col(UsageRecord.total_tokens), "total_tokens"),
            self._sum(col(UsageRecord.input_tokens), "input_tokens"),
            self._sum(col(UsageRecord.output_tokens), "output_tokens"),
            self._sum(col(UsageRecord.reasoning_tokens), "reasoning_tokens"),
            self._sum(col(UsageRecord.cached_tokens), "cached_tokens"),
        ]

    def build_totals_query(self, usage_filter: UsageFilter) -> Select[Any]:
        """Build query for request, token, error and cost totals."""
        return (
            select(
                *self._token_sums(),
                self._sum(self._error_flag(), "errors"),
                func.coalesce(func.sum(self.cost_expression()), 0.0).label("cost"),
            )
            .select_from(UsageRecord)
            .where(*self.build_filter_conditions(usage_filter))
        )

    def build_model_usage_query(
        self, usage_filter: UsageFilter, limit: int, offset: int = 0
    ) -> Select[Any]:
        """Build query for per-model aggregates ordered by model name."""
        model = col(UsageRecord.model)
        return (
            select(
                model.label("model"),
                *self._token_sums(),
                func.coalesce(func.sum(self.cost_expression()), 0.0).label("cost"),
            )
            .where(*self.build_filter_conditions(usage_filter))
            .group_by(model)
            .order_by(model)
            .limit(limit)
            .offset(offset)
        )

    def build_model_count_query(self, usage_filter: UsageFilter) -> SelectOfScalar[int]:
        """Build query counting distinct models among matching records."""
        return (
            select(func.count(func.distinct(col(UsageRecord.model))))
            .select_from(UsageRecord)
            .where(*self.build_filter_conditions(usage_filter))
        )

    def build_usage_rows_query(self, usage_filter: UsageFilter) -> Select[Any]:
        """Build query for the narrow per-record projection used by time series."""
        return (
            select(
                col(UsageRecord.occurred_at).label("occurred_at"),
                col(UsageRecord.total_tokens).label("total_tokens"),
                col(UsageRecord.input_tokens).label("input_tokens"),
                col(UsageRecord.output_tokens).label("output_tokens"),
                col(UsageRecord.reasoning_tokens).label("reasoning_tokens"),
                col(UsageRecord.cached_tokens).label("cached_tokens"),
                col(UsageRecord.is_error).label("is_error"),
                self.cost_expression().label("cost"),
            )
            .where(*self.build_filter_conditions(usage_filter))
            .order_by(col(UsageRecord.occurred_at).asc(), col(UsageRecord.id).asc())
        )

    def build_channel_usage_query(self, usage_filter: UsageFilter) -> Select[Any]:
        """Build query for per-credential aggregates, busiest first."""
        per_record = (
            select(
                self.credential_name_expression().label("channel"),
                col(UsageRecord.total_tokens).label("total_tokens"),
                col(UsageRecord.input_tokens).label("input_tokens"),
                col(UsageRecord.output_tokens).label("output_tokens"),
                col(UsageRecord.reasoning_tokens).label("reasoning_tokens"),
                col(UsageRecord.cached_tokens).label("cached_tokens"),
                self._error_flag().label("error"),
                self.cost_expression().label("cost"),
            )
            .where(*self.build_filter_conditions(usage_filter))
            .subquery("channel_usage")
        )
        requests = func.count().label("requests")
        return (
            select(
                per_record.c.channel,
                requests,
                self._sum(per_record.c.total_tokens, "total_tokens"),
                self._sum(per_record.c.input_tokens, "input_tokens"),
                self._sum(per_record.c.output_tokens, "output_tokens"),
                self._sum(per_record.c.reasoning_tokens, "reasoning_tokens"),
                self._sum(per_record.c.cached_tokens, "cached_tokens"),
                self._sum(per_record.c.error, "errors"),
                func.coalesce(func.sum(per_record.c.cost), 0.0).label("cost"),
            )
            .group_by(per_record.c.channel)
            .order_by(func.count().desc(), per_record.c.channel.asc())
        )
