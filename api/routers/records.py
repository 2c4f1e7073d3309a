"""Usage records API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_record_query_service
from api.routers.common_queries import get_record_query
from api.utils.error_handler import handle_api_operation
from core.models.api.responses import RecordListResponse
from core.models.domain.query import RecordQuery
from core.services import RecordQueryService

router = APIRouter(prefix="/v1", tags=["records"])


@router.get("/records", response_model=RecordListResponse)
def get_records(
    service: Annotated[RecordQueryService, Depends(get_record_query_service)],
    query: Annotated[RecordQuery, Depends(get_record_query)],
) -> RecordListResponse:
    """Get usage records with filtering, sorting and cursor pagination.

    Returns:
        One page of records plus ``nextCursor`` while more records remain

    Raises:
        HTTPException: 400 for an invalid cursor or sort, 503 if the database fails
    """
    return handle_api_operation(
        lambda: service.list_records(query),
        error_message="Failed to list records",
    )
