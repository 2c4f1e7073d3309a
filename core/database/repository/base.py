"""Base repository with dependency injection pattern."""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from core.exceptions import DataSourceError
from core.log import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=SQLModel)


class BaseRepository(Generic[T]):
    """Base repository with dependency injection pattern.

    Every statement goes through the ``_fetch_*``, ``_commit`` and ``_delete``
    helpers so driver and connection failures surface as ``DataSourceError``
    instead of leaking SQLAlchemy exceptions to the service layer.
    """

    def __init__(self, model: type[T], db: Session) -> None:
        self.model = model
        self.db = db

    def _fetch_all(self, statement: Any, operation: str) -> Sequence[Any]:
        try:
            return self.db.exec(statement).all()
        except SQLAlchemyError as exc:
            logger.error(f"{operation} failed: {exc}")
            raise DataSourceError(f"{operation} failed") from exc

    def _fetch_one(self, statement: Any, operation: str) -> Any:
        try:
            return self.db.exec(statement).first()
        except SQLAlchemyError as exc:
            logger.error(f"{operation} failed: {exc}")
            raise DataSourceError(f"{operation} failed") from exc

    def _commit(self, objs: Sequence[T], operation: str) -> None:
        try:
            self.db.add_all(objs)
            self.db.commit()
            for obj in objs:
                self.db.refresh(obj)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"{operation} failed: {exc}")
            raise DataSourceError(f"{operation} failed") from exc

    def _delete(self, obj: T, operation: str) -> None:
        try:
            self.db.delete(obj)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"{operation} failed: {exc}")
            raise DataSourceError(f"{operation} failed") from exc

    def create_many(self, objs: Sequence[T]) -> list[T]:
        """Insert several objects in one transaction."""
        if not objs:
            return []
        self._commit(objs, f"Bulk create {self.model.__name__}")
        logger.debug(f"Created {len(objs)} {self.model.__name__} rows")
        return list(objs)

    def count(self) -> int:
        """Count all objects."""
        statement = select(func.count()).select_from(self.model)
        return int(self._fetch_one(statement, f"Count {self.model.__name__}") or 0)
