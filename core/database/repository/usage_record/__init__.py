"""Usage record repository package."""

from .query_builders import UsageRecordQueryBuilder
from .repository import UsageRecordRepository

__all__ = ["UsageRecordRepository", "UsageRecordQueryBuilder"]
