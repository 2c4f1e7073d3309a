"""API response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.models.rows import ModelPrice, UsageRecord
from core.utils import to_utc


class CamelModel(BaseModel):
    """Base for payloads serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UsageRecordItem(CamelModel):
    """A usage record as returned by the records endpoint."""

    id: int
    occurred_at: datetime
    model: str
    route: str
    source: str
    total_tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    cached_tokens: int
    cost: float = Field(ge=0, description="Estimated cost in USD")
    is_error: bool

    @field_validator("occurred_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Attach UTC to timestamps read back without an offset."""
        return to_utc(v)

    @classmethod
    def from_row(cls, record: UsageRecord, cost: float | None) -> "UsageRecordItem":
        """Create item from a stored record and its derived cost."""
        if record.id is None:
            raise ValueError("Usage record has no id")
        return cls(
            id=record.id,
            occurred_at=record.occurred_at,
            model=record.model,
            route=record.route,
            source=record.source,
            total_tokens=record.total_tokens,
            input_tokens=record.input_tokens,
            output_tokens=record.output_tokens,
            reasoning_tokens=record.reasoning_tokens,
            cached_tokens=record.cached_tokens,
            cost=float(cost or 0.0),
            is_error=record.is_error,
        )


class RecordFilterOptions(CamelModel):
    """Distinct values available for the record filters."""

    models: list[str] = Field(default_factory=list)
    routes: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


class RecordListResponse(CamelModel):
    """A page of usage records."""

    items: list[UsageRecordItem]
    next_cursor: str | None = Field(
        None, description="Token for the next page; null at the end"
    )
    filters: RecordFilterOptions | None = None
    total: int | None = Field(None, description="Records matching the filter")


class ExplorePoint(CamelModel):
    """One sampled record on the explore scatter plot."""

    ts: int = Field(description="Epoch milliseconds of the call")
    tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    cached_tokens: int
    model: str


class ExploreFilterOptions(CamelModel):
    """Distinct values available for the explore filters."""

    routes: list[str] = Field(default_factory=list)
    names: list[str] = Field(default_factory=list)


class ExploreResponse(CamelModel):
    """Sampled explore points for a time window."""

    days: int
    total: int = Field(description="Records in the window before sampling")
    returned: int
    step: int = Field(ge=1, description="Sampling stride")
    points: list[ExplorePoint]
    filters: ExploreFilterOptions


class ModelPriceResponse(CamelModel):
    """Stored price for a model name or pattern."""

    model: str
    input_price_per_1m: float = Field(alias="inputPricePer1M")
    cached_input_price_per_1m: float = Field(alias="cachedInputPricePer1M")
    output_price_per_1m: float = Field(alias="outputPricePer1M")

    @classmethod
    def from_row(cls, price: ModelPrice) -> "ModelPriceResponse":
        """Create response from a stored price row."""
        return cls(
            model=price.model,
            input_price_per_1m=price.input_price_per_1m,
            cached_input_price_per_1m=price.cached_input_price_per_1m,
            output_price_per_1m=price.output_price_per_1m,
        )


class ModelPriceListResponse(CamelModel):
    """All stored model prices."""

    prices: list[ModelPriceResponse]
    count: int


class ModelPriceDeleteResponse(BaseModel):
    """Response model for price deletion."""

    success: bool
    message: str


class ModelUsageItem(CamelModel):
    """Usage aggregated for one model."""

    model: str
    requests: int
    tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    cached_tokens: int
    cost: float = Field(ge=0, description="Estimated cost in USD")


class DailyUsagePoint(CamelModel):
    """Usage of one calendar day in the configured timezone."""

    label: str = Field(description="Local date as YYYY-MM-DD")
    requests: int
    errors: int
    tokens: int
    cost: float


class HourlyUsagePoint(CamelModel):
    """Usage of one local clock hour."""

    label: str = Field(description="Local hour as MM-DD HH")
    timestamp: datetime = Field(description="Start of the hour (UTC)")
    requests: int
    tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    cached_tokens: int


class UsageOverview(CamelModel):
    """Totals, per-model aggregates and time series for a window."""

    total_requests: int = 0
    total_tokens: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_reasoning_tokens: int = 0
    total_cached_tokens: int = 0
    success_count: int = 0
    failure_count: int = 0
    success_rate: float = Field(1.0, ge=0, le=1)
    total_cost: float = 0.0
    models: list[ModelUsageItem] = Field(default_factory=list)
    by_day: list[DailyUsagePoint] = Field(default_factory=list)
    by_hour: list[HourlyUsagePoint] = Field(default_factory=list)


class OverviewMeta(CamelModel):
    """Pagination of the per-model aggregates."""

    page: int
    page_size: int
    total_models: int
    total_pages: int


class OverviewFilterOptions(CamelModel):
    """Distinct values available for the overview filters."""

    models: list[str] = Field(default_factory=list)
    routes: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    names: list[str] = Field(default_factory=list)


class OverviewResponse(CamelModel):
    """Usage overview for a time window."""

    overview: UsageOverview
    empty: bool
    days: int
    meta: OverviewMeta
    filters: OverviewFilterOptions
    timezone: str


class ChannelUsageItem(CamelModel):
    """Usage aggregated for one credential."""

    channel: str
    requests: int
    total_tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    cached_tokens: int
    error_count: int
    cost: float


class ChannelListResponse(CamelModel):
    """Per-credential usage for a time window."""

    channels: list[ChannelUsageItem]
    days: int
