"""API request models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ModelPriceUpsertRequest(BaseModel):
    """Request model for creating or updating a model price."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    model: str = Field(..., min_length=1, description="Model name, '*' wildcards allowed")
    input_price_per_1m: float = Field(..., ge=0, alias="inputPricePer1M")
    cached_input_price_per_1m: float = Field(0.0, ge=0, alias="cachedInputPricePer1M")
    output_price_per_1m: float = Field(..., ge=0, alias="outputPricePer1M")

    @field_validator("model")
    @classmethod
    def strip_model(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("model must not be blank")
        return stripped
