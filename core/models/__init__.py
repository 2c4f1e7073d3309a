"""Unified models package for tokenscope."""

# API models (request/response)
from core.models.api.requests import ModelPriceUpsertRequest
from core.models.api.responses import (
    ChannelListResponse,
    ExploreFilterOptions,
    ExplorePoint,
    ExploreResponse,
    ModelPriceDeleteResponse,
    ModelPriceListResponse,
    ModelPriceResponse,
    OverviewResponse,
    RecordFilterOptions,
    RecordListResponse,
    UsageRecordItem,
)

# Domain models (query parameters)
from core.models.domain.cursor import RecordCursor, decode_cursor, encode_cursor
from core.models.domain.query import (
    ChannelQuery,
    ExploreQuery,
    OverviewQuery,
    RecordQuery,
    SortSpec,
    UsageFilter,
)

# Database models (SQLModel rows)
from core.models.rows import AuthFileMapping, ModelPrice, UsageRecord

__all__ = [
    # API models
    "ModelPriceUpsertRequest",
    "UsageRecordItem",
    "RecordFilterOptions",
    "RecordListResponse",
    "ExplorePoint",
    "ExploreFilterOptions",
    "ExploreResponse",
    "ModelPriceResponse",
    "ModelPriceListResponse",
    "ModelPriceDeleteResponse",
    "OverviewResponse",
    "ChannelListResponse",
    # Domain models
    "UsageFilter",
    "SortSpec",
    "RecordQuery",
    "ExploreQuery",
    "OverviewQuery",
    "ChannelQuery",
    "RecordCursor",
    "encode_cursor",
    "decode_cursor",
    # Database models (SQLModel rows)
    "UsageRecord",
    "ModelPrice",
    "AuthFileMapping",
]
