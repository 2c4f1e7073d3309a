"""Overview API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_overview_service
from api.routers.common_queries import get_overview_query, get_skip_cache_param
from api.utils.error_handler import handle_api_operation
from core.models.api.responses import OverviewResponse
from core.models.domain.query import OverviewQuery
from core.services import OverviewService

router = APIRouter(prefix="/v1", tags=["overview"])


@router.get("/overview", response_model=OverviewResponse)
def get_overview(
    service: Annotated[OverviewService, Depends(get_overview_service)],
    query: Annotated[OverviewQuery, Depends(get_overview_query)],
    skip_cache: Annotated[bool, Depends(get_skip_cache_param)],
) -> OverviewResponse:
    """Get usage totals, a page of per-model usage and daily/hourly series.

    Results are cached per parameter set for a short time.
    """
    return handle_api_operation(
        lambda: service.get_overview(query, skip_cache=skip_cache),
        error_message="Failed to build usage overview",
    )
