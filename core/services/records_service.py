"""Record query service: filtered, sorted, cursor-paginated usage records."""

from pydantic.alias_generators import to_snake

from core import get_logger
from core.config import Settings
from core.database.repository import UsageRecordRepository
from core.exceptions import InvalidCursorError
from core.models.api.responses import (
    RecordFilterOptions,
    RecordListResponse,
    UsageRecordItem,
)
from core.models.domain.cursor import (
    CursorValue,
    RecordCursor,
    decode_cursor,
    encode_cursor,
)
from core.models.domain.query import RecordQuery, SortSpec, clamp, optional_text
from core.models.rows import UsageRecord
from core.types import SortField

logger = get_logger(__name__)


class RecordQueryService:
    """Service answering records page requests."""

    def __init__(self, repository: UsageRecordRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings

    def _resolve_limit(self, limit: int | None) -> int:
        return clamp(
            limit,
            default=self.settings.records_default_limit,
            minimum=1,
            maximum=self.settings.records_max_limit,
        )

    def _resolve_cursor(self, token: str | None, sort: SortSpec) -> RecordCursor | None:
        """Decode a client cursor and make sure it belongs to this ordering."""
        token = optional_text(token)
        if token is None:
            return None
        cursor = decode_cursor(token)
        if cursor.field != sort.field or cursor.order != sort.order:
            raise InvalidCursorError(
                "Cursor was issued for a different sort; restart from the first page"
            )
        return cursor

    @staticmethod
    def _sort_value(record: UsageRecord, cost: float, field: SortField) -> CursorValue:
        if field == SortField.COST:
            return cost
        return getattr(record, to_snake(field.value))

    def _filter_options(self) -> RecordFilterOptions:
        limit = self.settings.filter_values_limit
        return RecordFilterOptions(
            models=self.repository.distinct_values("model", limit=limit),
            routes=self.repository.distinct_values("route", limit=limit),
            sources=self.repository.distinct_values("source", limit=limit),
        )

    def list_records(self, query: RecordQuery) -> RecordListResponse:
        """Get one page of usage records.

        Args:
            query: Filter, ordering, continuation and page options

        Returns:
            Page of records with the cursor for the next page, if any

        Raises:
            InvalidCursorError: If the cursor is malformed or minted for another sort
            DataSourceError: If the database query fails
        """
        limit = self._resolve_limit(query.limit)
        cursor = self._resolve_cursor(query.cursor, query.sort)

        rows = self.repository.fetch_page(
            query.filter, query.sort, cursor=cursor, limit=limit + 1
        )
        has_more = len(rows) > limit
        rows = rows[:limit]

        items = [UsageRecordItem.from_row(record, cost) for record, cost in rows]

        next_cursor = None
        if has_more and items:
            record, cost = rows[-1]
            next_cursor = encode_cursor(
                query.sort.field,
                query.sort.order,
                self._sort_value(record, cost, query.sort.field),
                items[-1].id,
            )

        response = RecordListResponse(items=items, next_cursor=next_cursor)
        if query.include_filters:
            response.filters = self._filter_options()
        if query.include_total:
            response.total = self.repository.count_matching(query.filter)

        logger.debug(
            f"Listed {len(items)} records sorted by "
            f"{query.sort.field.value} {query.sort.order.value}, more={has_more}"
        )
        return response
