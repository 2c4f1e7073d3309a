"""Query value objects shared by the record and explore services."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from core.exceptions import InvalidParameterError
from core.types import SortField, SortOrder
from core.utils import parse_datetime, to_utc


class UsageFilter(BaseModel):
    """Conjunctive record filter. Unset fields impose no constraint."""

    model_config = ConfigDict(frozen=True)

    model: str | None = Field(None, description="Exact model name")
    route: str | None = Field(None, description="Exact route")
    source: str | None = Field(None, description="Exact source identifier")
    start: datetime | None = Field(None, description="Inclusive lower bound")
    end: datetime | None = Field(None, description="Inclusive upper bound")
    name: str | None = Field(None, description="Exact credential name")

    def window_only(self) -> "UsageFilter":
        """Get a copy keeping only the time bounds."""
        return UsageFilter(start=self.start, end=self.end)


class SortSpec(BaseModel):
    """Requested ordering of usage records."""

    model_config = ConfigDict(frozen=True)

    field: SortField = SortField.OCCURRED_AT
    order: SortOrder = SortOrder.DESC

    @classmethod
    def parse(cls, field: str | None, order: str | None) -> "SortSpec":
        """Build a sort spec from raw request values.

        Raises:
            InvalidParameterError: If the field or order is not recognized
        """
        spec = cls()
        if field:
            try:
                spec = spec.model_copy(update={"field": SortField(field)})
            except ValueError:
                allowed = ", ".join(item.value for item in SortField)
                raise InvalidParameterError(
                    f"Unsupported sortField '{field}'. Expected one of: {allowed}"
                )
        if order:
            try:
                spec = spec.model_copy(update={"order": SortOrder(order.lower())})
            except ValueError:
                raise InvalidParameterError(
                    f"Unsupported sortOrder '{order}'. Expected 'asc' or 'desc'"
                )
        return spec


class RecordQuery(BaseModel):
    """Parameters of a records page request."""

    filter: UsageFilter = Field(default_factory=UsageFilter)
    sort: SortSpec = Field(default_factory=SortSpec)
    cursor: str | None = None
    limit: int | None = None
    include_filters: bool = False
    include_total: bool = False


class ExploreQuery(BaseModel):
    """Parameters of an explore request, as supplied by the client."""

    model_config = ConfigDict(frozen=True)

    days: int | None = None
    max_points: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    route: str | None = None
    name: str | None = None

    def cache_params(self) -> dict[str, object]:
        """Get the parameters that identify an explore result."""
        return {
            "days": self.days,
            "maxPoints": self.max_points,
            "start": self.start,
            "end": self.end,
            "route": self.route,
            "name": self.name,
        }


EXPLORE_CACHE_FIELDS = ("days", "maxPoints", "start", "end", "route", "name")


class OverviewQuery(BaseModel):
    """Parameters of a usage overview request, as supplied by the client."""

    model_config = ConfigDict(frozen=True)

    days: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    model: str | None = None
    route: str | None = None
    source: str | None = None
    name: str | None = None
    page: int | None = None
    page_size: int | None = None

    def cache_params(self) -> dict[str, object]:
        """Get the parameters that identify an overview result."""
        return {
            "days": self.days,
            "start": self.start,
            "end": self.end,
            "model": self.model,
            "route": self.route,
            "source": self.source,
            "name": self.name,
            "page": self.page,
            "pageSize": self.page_size,
        }


OVERVIEW_CACHE_FIELDS = (
    "days",
    "start",
    "end",
    "model",
    "route",
    "source",
    "name",
    "page",
    "pageSize",
)


class ChannelQuery(BaseModel):
    """Window of a per-credential usage request."""

    model_config = ConfigDict(frozen=True)

    days: int | None = None
    start: datetime | None = None
    end: datetime | None = None


def parse_timestamp_param(name: str, value: str | None) -> datetime | None:
    """Parse an optional timestamp query parameter into UTC.

    Raises:
        InvalidParameterError: If the value is present but not a timestamp
    """
    if value is None or not value.strip():
        return None
    parsed = parse_datetime(value.strip())
    if parsed is None:
        raise InvalidParameterError(f"Invalid {name} timestamp: '{value}'")
    return to_utc(parsed)


def optional_text(value: str | None) -> str | None:
    """Treat blank filter values as absent."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def clamp(value: int | None, default: int, minimum: int, maximum: int) -> int:
    """Clamp an optional integer into ``[minimum, maximum]``."""
    if value is None:
        return default
    return min(max(value, minimum), maximum)
