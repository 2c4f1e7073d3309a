"""Utility functions for the application."""

from datetime import UTC, datetime, time, timedelta, tzinfo

from core.log import get_logger

logger = get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def get_current_timestamp() -> str:
    """Get current timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


def utc_now() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def to_utc(value: datetime) -> datetime:
    """Return a timezone-aware UTC datetime.

    Naive datetimes are assumed to already be in UTC, which is how they are
    stored and read back from SQLite.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(date_str: str | None) -> datetime | None:
    """Parse datetime string to Python datetime object."""
    if not date_str:
        return None

    try:
        # Try parsing ISO format
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        # Try parsing other common formats
        return datetime.strptime(date_str, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        logger.warning(f"Could not parse date: {date_str}")
        return None


def start_of_day(value: datetime, tz: tzinfo) -> datetime:
    """Get the first instant of the calendar day containing ``value`` in ``tz``."""
    local = to_utc(value).astimezone(tz)
    return to_utc(datetime.combine(local.date(), time.min, tzinfo=tz))


def end_of_day(value: datetime, tz: tzinfo) -> datetime:
    """Get the last instant of the calendar day containing ``value`` in ``tz``."""
    local = to_utc(value).astimezone(tz)
    return to_utc(datetime.combine(local.date(), time.max, tzinfo=tz))


def to_epoch_millis(value: datetime) -> int:
    """Convert a datetime to milliseconds since the Unix epoch."""
    return (to_utc(value) - EPOCH) // timedelta(milliseconds=1)
