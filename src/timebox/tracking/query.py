"""Filtering, ordering and pagination of finished time boxes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from timebox.tracking.errors import InvalidListOptionsError
from timebox.tracking.filters import ListFilter, resolve
from timebox.tracking.types import TimeBox

DEFAULT_LIMIT = 25


class SortOrder(str, Enum):
    """Order of listed time boxes.

    Attributes:
        ASCENDING: Oldest first.
        DESCENDING: Latest first.
    """

    ASCENDING = "ascending"
    DESCENDING = "descending"


class ListOptions(BaseModel):
    """How to list finished time boxes.

    ``page`` and ``limit`` only apply when no date filter is set, a date
    window already bounds the result.

    Attributes:
        filter: Date filter on the start instant of each box.
        order: Order of the returned boxes.
        page: Zero-based page index.
        limit: Page size, must be at least 1.
    """

    model_config = ConfigDict(frozen=True)

    filter: ListFilter = Field(default_factory=ListFilter, description="Date filter")
    order: SortOrder = Field(default=SortOrder.ASCENDING, description="Sort order")
    page: NonNegativeInt = Field(default=0, description="Zero-based page index")
    limit: int = Field(default=DEFAULT_LIMIT, description="Page size")


class ListResult(BaseModel):
    """A page of finished time boxes.

    Attributes:
        total: Number of boxes matching the filter, before pagination.
        items: The boxes on this page, in the requested order.
    """

    total: int = Field(default=0, description="Matching boxes before pagination")
    items: list[TimeBox] = Field(default_factory=list, description="Boxes on this page")


def query_finished(
    finished: list[TimeBox],
    options: ListOptions,
    now: datetime,
) -> ListResult:
    """Apply a date filter or pagination, then ordering, to finished boxes.

    Args:
        finished: Finished boxes in chronological order.
        options: Filter, order and pagination settings.
        now: Reference instant for relative date filters.

    Returns:
        The matching boxes. Out of range pages return an empty page.

    Raises:
        InvalidListOptionsError: If ``limit`` is smaller than 1.
        InvalidRangeError: If the date filter is a reversed range.
    """
    if options.limit < 1:
        raise InvalidListOptionsError(f"limit must be at least 1, got {options.limit}")

    window = resolve(options.filter, now)
    if window is not None:
        items = [box for box in finished if window.contains(box.time_start())]
        total = len(items)
    else:
        total = len(finished)
        offset = options.page * options.limit
        items = list(finished[offset : offset + options.limit])

    if options.order == SortOrder.DESCENDING:
        items.reverse()

    return ListResult(total=total, items=items)
