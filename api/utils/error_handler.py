"""Error handling utilities for API endpoints."""

from collections.abc import Callable
from typing import TypeVar

from fastapi import HTTPException, status

from core import get_logger
from core.exceptions import DataSourceError, NotFoundError, QueryError

logger = get_logger(__name__)

T = TypeVar("T")

DATA_SOURCE_UNAVAILABLE = "Data source unavailable"
INTERNAL_SERVER_ERROR = "Internal Server Error"


def handle_api_operation(
    operation: Callable[[], T],
    error_message: str = "Operation failed",
) -> T:
    """Handle API operations with consistent error handling.

    Client errors keep their message; data source and unexpected failures are
    logged and answered with a generic detail.
    """
    try:
        return operation()
    except HTTPException:
        raise
    except QueryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DataSourceError as e:
        logger.error(f"{error_message}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATA_SOURCE_UNAVAILABLE,
        )
    except Exception as e:
        logger.error(f"{error_message}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_SERVER_ERROR,
        )
