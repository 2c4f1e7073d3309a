"""API routers package."""

from .channels import router as channels_router
from .common import router as common_router
from .explore import router as explore_router
from .overview import router as overview_router
from .prices import router as prices_router
from .records import router as records_router

__all__ = [
    "channels_router",
    "common_router",
    "explore_router",
    "overview_router",
    "prices_router",
    "records_router",
]
