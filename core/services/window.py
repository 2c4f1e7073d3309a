"""Time window resolution shared by the aggregate services."""

from datetime import datetime, timedelta, tzinfo
from typing import NamedTuple

from core.exceptions import InvalidParameterError
from core.models.domain.query import clamp
from core.utils import end_of_day, start_of_day, to_utc


class TimeWindow(NamedTuple):
    """Resolved ``[since, until]`` window and the number of days it spans."""

    days: int
    since: datetime
    until: datetime


def resolve_window(
    days: int | None,
    start: datetime | None,
    end: datetime | None,
    *,
    default_days: int,
    max_days: int,
    tz: tzinfo,
    now: datetime,
) -> TimeWindow:
    """Resolve client window parameters into a concrete time window.

    Explicit bounds snap to whole calendar days in ``tz``. Without bounds the
    window is the trailing ``days`` up to ``now``.

    Raises:
        InvalidParameterError: If ``end`` lies before ``start``
    """
    days = clamp(days, default=default_days, minimum=1, maximum=max_days)
    now = to_utc(now)

    if start is not None and end is not None:
        if end < start:
            raise InvalidParameterError("end must not be before start")
        since = start_of_day(start, tz)
        until = end_of_day(end, tz)
        covered = until.astimezone(tz).date() - since.astimezone(tz).date()
        return TimeWindow(covered.days + 1, since, until)

    if end is not None:
        until = end_of_day(end, tz)
        since = start_of_day(until - timedelta(days=days - 1), tz)
        return TimeWindow(days, since, until)

    if start is not None:
        since = start_of_day(start, tz)
        covered = now.astimezone(tz).date() - since.astimezone(tz).date()
        return TimeWindow(max(covered.days + 1, 1), since, now)

    return TimeWindow(days, now - timedelta(days=days), now)
