"""Core database functionality."""

from .engine import (
    create_database_engine,
    create_database_tables,
    drop_database_tables,
    reset_database,
)
from .repository import ModelPriceRepository, UsageRecordRepository

__all__ = [
    "ModelPriceRepository",
    "UsageRecordRepository",
    "create_database_engine",
    "create_database_tables",
    "drop_database_tables",
    "reset_database",
]
