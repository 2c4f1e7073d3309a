"""Explore API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_explore_service
from api.routers.common_queries import get_explore_query, get_skip_cache_param
from api.utils.error_handler import handle_api_operation
from core.models.api.responses import ExploreResponse
from core.models.domain.query import ExploreQuery
from core.services import ExploreService

router = APIRouter(prefix="/v1", tags=["explore"])


@router.get("/explore", response_model=ExploreResponse)
def get_explore(
    service: Annotated[ExploreService, Depends(get_explore_service)],
    query: Annotated[ExploreQuery, Depends(get_explore_query)],
    skip_cache: Annotated[bool, Depends(get_skip_cache_param)],
) -> ExploreResponse:
    """Get down-sampled usage points for the scatter plot.

    Results are cached per parameter set for a short time.
    """
    return handle_api_operation(
        lambda: service.get_points(query, skip_cache=skip_cache),
        error_message="Failed to explore usage",
    )
