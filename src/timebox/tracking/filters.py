"""Date filters for listing finished time boxes.

Filters are symbolic (``today``, ``last-week``...) or literal dates and
ranges. :func:`resolve` turns one into a half-open ``[start, end)`` window
using calendar boundaries in the timezone of the ``now`` it is given, so
the result only depends on its arguments.
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timebox.tracking.errors import InvalidDateSpecError, InvalidRangeError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
RANGE_SEPARATOR = ".."


class FilterKind(str, Enum):
    """Kind of date filter.

    Attributes:
        NONE: No filtering, pagination applies instead.
        TODAY: The current calendar day.
        YESTERDAY: The previous calendar day.
        THIS_WEEK: Monday to Sunday of the current week.
        LAST_WEEK: Monday to Sunday of the previous week.
        THIS_MONTH: The current calendar month.
        LAST_MONTH: The previous calendar month.
        DATE: A single literal day.
        RANGE: Literal days from start to end, both inclusive.
    """

    NONE = "none"
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this-week"
    LAST_WEEK = "last-week"
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    DATE = "date"
    RANGE = "range"


class ListFilter(BaseModel):
    """A date filter applied to the start instant of finished time boxes.

    Attributes:
        kind: Which filter this is.
        day: The day for ``DATE`` filters.
        start: First day for ``RANGE`` filters.
        end: Last day (inclusive) for ``RANGE`` filters.
    """

    model_config = ConfigDict(frozen=True)

    kind: FilterKind = Field(default=FilterKind.NONE, description="Kind of filter")
    day: date | None = Field(default=None, description="Day of a DATE filter")
    start: date | None = Field(default=None, description="First day of a RANGE filter")
    end: date | None = Field(default=None, description="Last day of a RANGE filter")

    @model_validator(mode="after")
    def _check_fields(self) -> "ListFilter":
        if self.kind == FilterKind.DATE and self.day is None:
            raise ValueError("day is required for 'date' filters")
        if self.kind == FilterKind.RANGE and (self.start is None or self.end is None):
            raise ValueError("start and end are required for 'range' filters")
        return self

    @classmethod
    def on(cls, day: date) -> "ListFilter":
        return cls(kind=FilterKind.DATE, day=day)

    @classmethod
    def between(cls, start: date, end: date) -> "ListFilter":
        return cls(kind=FilterKind.RANGE, start=start, end=end)

    @property
    def is_none(self) -> bool:
        return self.kind == FilterKind.NONE


class TimeWindow(NamedTuple):
    """Half-open interval of instants, ``start <= t < end``."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def _midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _day_window(first: date, last: date, tz: tzinfo) -> TimeWindow:
    """Window from the midnight of ``first`` to the midnight after ``last``."""
    return TimeWindow(_midnight(first, tz), _midnight(last + timedelta(days=1), tz))


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def _first_of_previous_month(day: date) -> date:
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)


def resolve(list_filter: ListFilter, now: datetime) -> TimeWindow | None:
    """Resolve a filter into a window of instants.

    Day, week and month boundaries are taken in the timezone of ``now``; a
    naive ``now`` is treated as UTC. Every midnight gets the offset its own
    date has in that timezone, so a ``ZoneInfo`` or
    :class:`~timebox.tracking.types.LocalTimezone` handles DST switches
    inside or between windows. Weeks start on Monday.

    Args:
        list_filter: The filter to resolve.
        now: The reference instant for relative filters.

    Returns:
        The matching window, or None for ``FilterKind.NONE``.

    Raises:
        InvalidRangeError: If a range filter starts after it ends.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    tz = now.tzinfo
    today = now.date()
    kind = list_filter.kind

    if kind == FilterKind.NONE:
        return None
    if kind == FilterKind.TODAY:
        return _day_window(today, today, tz)
    if kind == FilterKind.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return _day_window(yesterday, yesterday, tz)
    if kind in (FilterKind.THIS_WEEK, FilterKind.LAST_WEEK):
        monday = today - timedelta(days=today.weekday())
        if kind == FilterKind.LAST_WEEK:
            monday -= timedelta(days=7)
        return TimeWindow(_midnight(monday, tz), _midnight(monday + timedelta(days=7), tz))
    if kind == FilterKind.THIS_MONTH:
        first = today.replace(day=1)
        return TimeWindow(_midnight(first, tz), _midnight(_first_of_next_month(first), tz))
    if kind == FilterKind.LAST_MONTH:
        first = _first_of_previous_month(today)
        return TimeWindow(_midnight(first, tz), _midnight(today.replace(day=1), tz))
    if kind == FilterKind.DATE:
        return _day_window(list_filter.day, list_filter.day, tz)

    if list_filter.start > list_filter.end:
        raise InvalidRangeError(list_filter.start, list_filter.end)
    return _day_window(list_filter.start, list_filter.end, tz)


def _parse_date(token: str) -> date:
    if not DATE_PATTERN.match(token):
        raise InvalidDateSpecError(token, "expected YYYY-MM-DD")
    try:
        return date.fromisoformat(token)
    except ValueError as e:
        raise InvalidDateSpecError(token, str(e)) from e


_SYMBOLIC = {
    FilterKind.TODAY.value: FilterKind.TODAY,
    FilterKind.YESTERDAY.value: FilterKind.YESTERDAY,
    FilterKind.THIS_WEEK.value: FilterKind.THIS_WEEK,
    FilterKind.LAST_WEEK.value: FilterKind.LAST_WEEK,
    FilterKind.THIS_MONTH.value: FilterKind.THIS_MONTH,
    FilterKind.LAST_MONTH.value: FilterKind.LAST_MONTH,
}


def parse_list_filter(spec: str) -> ListFilter:
    """Parse a user supplied date or range specification.

    Accepts ``today``, ``yesterday``, ``this-week``, ``last-week``,
    ``this-month``, ``last-month`` (case-insensitive), a single
    ``YYYY-MM-DD`` date or a ``YYYY-MM-DD..YYYY-MM-DD`` range.

    Raises:
        InvalidDateSpecError: Naming the token that could not be parsed.
        InvalidRangeError: If the range starts after it ends.
    """
    token = spec.strip().lower()

    if token in _SYMBOLIC:
        return ListFilter(kind=_SYMBOLIC[token])

    if RANGE_SEPARATOR in token:
        parts = token.split(RANGE_SEPARATOR)
        if len(parts) != 2:
            raise InvalidDateSpecError(spec, "range must be in format YYYY-MM-DD..YYYY-MM-DD")
        start, end = _parse_date(parts[0]), _parse_date(parts[1])
        if start > end:
            raise InvalidRangeError(start, end)
        return ListFilter.between(start, end)

    return ListFilter.on(_parse_date(token))
