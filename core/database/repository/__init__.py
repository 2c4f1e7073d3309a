"""Repository layer for database operations."""

from .model_price import ModelPriceRepository
from .usage_record import UsageRecordQueryBuilder, UsageRecordRepository

__all__ = [
    "ModelPriceRepository",
    "UsageRecordQueryBuilder",
    "UsageRecordRepository",
]
