"""Opaque continuation cursor for record pagination.

A cursor records the sort position of the last item on a page: the value of
the sort field plus the record id used as tie-breaker. It is serialized as a
small versioned JSON document and encoded with URL-safe base64 so that it can
travel in a query string untouched.
"""

import base64
import binascii
import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import InvalidCursorError
from core.types import SortField, SortOrder
from core.utils import to_utc

CURSOR_VERSION = 1

CursorValue = str | int | float | bool | datetime

_INTEGER_FIELDS = {
    SortField.TOTAL_TOKENS,
    SortField.INPUT_TOKENS,
    SortField.OUTPUT_TOKENS,
    SortField.REASONING_TOKENS,
    SortField.CACHED_TOKENS,
}
_TEXT_FIELDS = {SortField.MODEL, SortField.ROUTE, SortField.SOURCE}


class RecordCursor(BaseModel):
    """Position of the last returned record in the established total order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = Field(CURSOR_VERSION, alias="v")
    field: SortField = Field(..., alias="f")
    order: SortOrder = Field(..., alias="o")
    value: Any = Field(..., alias="val")
    id: int


def _serialize_value(field: SortField, value: CursorValue) -> str | int | float | bool:
    if field == SortField.OCCURRED_AT:
        if not isinstance(value, datetime):
            raise TypeError(f"occurredAt cursor value must be a datetime, got {value!r}")
        return to_utc(value).isoformat()
    if field == SortField.COST:
        return float(value)
    if field == SortField.IS_ERROR:
        return bool(value)
    return value


def _deserialize_value(field: SortField, raw: Any) -> CursorValue:
    """Restore the typed sort value, rejecting anything of the wrong shape."""
    if field == SortField.OCCURRED_AT:
        if not isinstance(raw, str):
            raise InvalidCursorError("Cursor timestamp must be a string")
        try:
            return to_utc(datetime.fromisoformat(raw))
        except ValueError:
            raise InvalidCursorError("Cursor timestamp is malformed")
    if field in _INTEGER_FIELDS:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise InvalidCursorError(f"Cursor value for {field.value} must be an integer")
        return raw
    if field == SortField.COST:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise InvalidCursorError("Cursor value for cost must be a number")
        return float(raw)
    if field == SortField.IS_ERROR:
        if not isinstance(raw, bool):
            raise InvalidCursorError("Cursor value for isError must be a boolean")
        return raw
    if field in _TEXT_FIELDS:
        if not isinstance(raw, str):
            raise InvalidCursorError(f"Cursor value for {field.value} must be a string")
        return raw
    raise InvalidCursorError(f"Unsupported cursor field {field.value}")


def encode_cursor(
    field: SortField, order: SortOrder, value: CursorValue, record_id: int
) -> str:
    """Encode a pagination position into an opaque token."""
    payload = {
        "v": CURSOR_VERSION,
        "f": field.value,
        "o": order.value,
        "val": _serialize_value(field, value),
        "id": record_id,
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> RecordCursor:
    """Decode a token produced by ``encode_cursor``.

    Raises:
        InvalidCursorError: If the token cannot be decoded into a cursor
    """
    token = token.strip()
    if not token:
        raise InvalidCursorError("Cursor is empty")

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        raise InvalidCursorError("Cursor is not a valid token")

    if not isinstance(payload, dict):
        raise InvalidCursorError("Cursor payload must be an object")
    if payload.get("v") != CURSOR_VERSION:
        raise InvalidCursorError(f"Unsupported cursor version: {payload.get('v')!r}")

    try:
        cursor = RecordCursor.model_validate(payload)
    except ValidationError:
        raise InvalidCursorError("Cursor payload is incomplete")

    if isinstance(payload.get("id"), bool) or not isinstance(payload.get("id"), int):
        raise InvalidCursorError("Cursor id must be an integer")

    value = _deserialize_value(cursor.field, cursor.value)
    return cursor.model_copy(update={"value": value})
