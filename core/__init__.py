"""Core functionality for the tokenscope service."""

from .config import Settings, load_settings
from .log import (
    get_logger,
    setup_logging,
    setup_production_logging,
    setup_test_logging,
)
from .types import Environment, SortField, SortOrder

__all__ = [
    "Environment",
    "Settings",
    "SortField",
    "SortOrder",
    "get_logger",
    "load_settings",
    "setup_logging",
    "setup_production_logging",
    "setup_test_logging",
]
