"""Model prices API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_model_price_repository
from api.utils.error_handler import handle_api_operation
from core.database.repository import ModelPriceRepository
from core.exceptions import NotFoundError
from core.models.api.requests import ModelPriceUpsertRequest
from core.models.api.responses import (
    ModelPriceDeleteResponse,
    ModelPriceListResponse,
    ModelPriceResponse,
)

router = APIRouter(prefix="/v1", tags=["prices"])


@router.get("/prices", response_model=ModelPriceListResponse)
def get_prices(
    repository: Annotated[ModelPriceRepository, Depends(get_model_price_repository)],
) -> ModelPriceListResponse:
    """Get all model prices ordered by model name."""

    def list_prices_operation() -> ModelPriceListResponse:
        prices = [ModelPriceResponse.from_row(price) for price in repository.list_all()]
        return ModelPriceListResponse(prices=prices, count=len(prices))

    return handle_api_operation(
        list_prices_operation, error_message="Failed to list prices"
    )


@router.post("/prices", response_model=ModelPriceResponse)
def upsert_price(
    request: ModelPriceUpsertRequest,
    repository: Annotated[ModelPriceRepository, Depends(get_model_price_repository)],
) -> ModelPriceResponse:
    """Create or update the price of a model.

    Args:
        request: Model name or pattern and its per-million-token prices

    Returns:
        The stored price
    """

    def upsert_price_operation() -> ModelPriceResponse:
        price = repository.upsert(
            request.model,
            input_price_per_1m=request.input_price_per_1m,
            output_price_per_1m=request.output_price_per_1m,
            cached_input_price_per_1m=request.cached_input_price_per_1m,
        )
        return ModelPriceResponse.from_row(price)

    return handle_api_operation(
        upsert_price_operation, error_message="Failed to save price"
    )


@router.delete("/prices/{model:path}", response_model=ModelPriceDeleteResponse)
def delete_price(
    model: str,
    repository: Annotated[ModelPriceRepository, Depends(get_model_price_repository)],
) -> ModelPriceDeleteResponse:
    """Delete the price of a model name or pattern.

    Args:
        model: Exact stored model name or pattern

    Raises:
        HTTPException: 404 if no price is stored for ``model``
    """

    def delete_price_operation() -> ModelPriceDeleteResponse:
        if not repository.delete_by_model(model):
            raise NotFoundError(f"No price stored for {model}")
        return ModelPriceDeleteResponse(
            success=True, message=f"Price for {model} deleted"
        )

    return handle_api_operation(
        delete_price_operation, error_message="Failed to delete price"
    )
