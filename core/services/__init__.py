"""Core services package."""

from .explore_service import ExploreService
from .overview_service import OverviewService
from .records_service import RecordQueryService

__all__ = [
    "ExploreService",
    "OverviewService",
    "RecordQueryService",
]
