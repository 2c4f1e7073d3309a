"""Channels API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_overview_service
from api.routers.common_queries import get_channel_query
from api.utils.error_handler import handle_api_operation
from core.models.api.responses import ChannelListResponse
from core.models.domain.query import ChannelQuery
from core.services import OverviewService

router = APIRouter(prefix="/v1", tags=["channels"])


@router.get("/channels", response_model=ChannelListResponse)
def get_channels(
    service: Annotated[OverviewService, Depends(get_overview_service)],
    query: Annotated[ChannelQuery, Depends(get_channel_query)],
) -> ChannelListResponse:
    """Get usage per credential, busiest first."""
    return handle_api_operation(
        lambda: service.get_channels(query),
        error_message="Failed to list channel usage",
    )
