"""SQLModel database models for TokenScope."""

from datetime import datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Index, SQLModel

from core.utils import utc_now


class UsageRecord(SQLModel, table=True):
    """One observed API call. Written by ingestion, read-only here."""

    __tablename__ = "usage_records"

    id: int | None = Field(default=None, primary_key=True)
    occurred_at: datetime = Field(
        sa_type=DateTime(timezone=True),
        description="When the upstream API call happened (UTC)",
    )
    route: str = Field(description="API route the call went through")
    source: str = Field(default="", description="Origin identifier of the call")
    auth_index: str | None = Field(
        default=None, description="Credential identifier assigned by the proxy"
    )
    model: str = Field(description="Model name reported by the upstream")
    total_tokens: int = Field(ge=0)
    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)
    reasoning_tokens: int = Field(default=0, ge=0)
    cached_tokens: int = Field(default=0, ge=0)
    is_error: bool = Field(default=False, description="Whether the call failed")

    synced_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        description="When the record was pulled from the proxy",
    )
    raw: str = Field(default="", description="Raw upstream payload")

    # Performance indexes
    __table_args__ = (
        UniqueConstraint(
            "occurred_at",
            "route",
            "model",
            "source",
            name="usage_records_occurred_route_model_source_idx",
        ),
        Index("idx_usage_records_occurred_at_id", "occurred_at", "id"),
        Index("idx_usage_records_model", "model"),
        Index("idx_usage_records_route", "route"),
    )


class ModelPrice(SQLModel, table=True):
    """Per-million-token prices for a model name or wildcard pattern."""

    __tablename__ = "model_prices"

    id: int | None = Field(default=None, primary_key=True)
    model: str = Field(
        unique=True, index=True, description="Model name, '*' matches any run"
    )
    input_price_per_1m: float = Field(ge=0)
    cached_input_price_per_1m: float = Field(default=0.0, ge=0)
    output_price_per_1m: float = Field(ge=0)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )


class AuthFileMapping(SQLModel, table=True):
    """Display metadata for a proxy credential."""

    __tablename__ = "auth_file_mappings"

    auth_id: str = Field(primary_key=True)
    name: str = Field(default="", description="Human readable credential name")
    label: str | None = None
    provider: str | None = None
    source: str | None = None
    email: str | None = None
    updated_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
    synced_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
