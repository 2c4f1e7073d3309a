"""Model price repository using SQLModel with dependency injection."""

from sqlmodel import Session, select

from core.database.repository.base import BaseRepository
from core.log import get_logger
from core.models.rows import ModelPrice

logger = get_logger(__name__)


class ModelPriceRepository(BaseRepository[ModelPrice]):
    """Model price repository using SQLModel with dependency injection."""

    def __init__(self, db: Session) -> None:
        """Initialize model price repository."""
        super().__init__(ModelPrice, db)

    def list_all(self) -> list[ModelPrice]:
        """Get all prices ordered by model name."""
        statement = select(ModelPrice).order_by(ModelPrice.model)
        return list(self._fetch_all(statement, "List model prices"))

    def get_by_model(self, model: str) -> ModelPrice | None:
        """Get the price stored for an exact model name or pattern.

        Args:
            model: Model name or wildcard pattern

        Returns:
            ModelPrice if found, None otherwise
        """
        statement = select(ModelPrice).where(ModelPrice.model == model)
        return self._fetch_one(statement, "Get model price")

    def upsert(
        self,
        model: str,
        input_price_per_1m: float,
        output_price_per_1m: float,
        cached_input_price_per_1m: float = 0.0,
    ) -> ModelPrice:
        """Create a price or update the existing one for the same model."""
        price = self.get_by_model(model)
        if price is None:
            price = ModelPrice(
                model=model,
                input_price_per_1m=input_price_per_1m,
                cached_input_price_per_1m=cached_input_price_per_1m,
                output_price_per_1m=output_price_per_1m,
            )
            logger.info(f"Adding price for {model}")
        else:
            price.input_price_per_1m = input_price_per_1m
            price.cached_input_price_per_1m = cached_input_price_per_1m
            price.output_price_per_1m = output_price_per_1m
            logger.info(f"Updating price for {model}")
        self._commit([price], "Upsert model price")
        return price

    def delete_by_model(self, model: str) -> bool:
        """Delete the price stored for an exact model name or pattern.

        Returns:
            True if a price was deleted, False if none was stored
        """
        price = self.get_by_model(model)
        if price is None:
            return False
        self._delete(price, "Delete model price")
        logger.info(f"Deleted price for {model}")
        return True
