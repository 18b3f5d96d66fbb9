"""Time tracking store: entities, listing and the store contract.

Example:
    from timebox.tracking import InMemoryTimeTracker, ListOptions, SortOrder

    tracker = InMemoryTimeTracker()
    tracker.begin("Triage issues")
    tracker.end("Done for today")
    page = tracker.finished(ListOptions(order=SortOrder.DESCENDING))
"""

from timebox.tracking.errors import (
    ActiveBoxPresentError,
    AlreadyActiveError,
    AlreadyExistsError,
    CorruptStateError,
    InvalidDateSpecError,
    InvalidListOptionsError,
    InvalidRangeError,
    NoActiveBoxError,
    NoFinishedBoxesError,
    StateNotFoundError,
    StorageError,
    StorageIOError,
    TimeTrackingError,
    UnsortedNotesError,
)
from timebox.tracking.filters import FilterKind, ListFilter, TimeWindow, parse_list_filter, resolve
from timebox.tracking.memory import InMemoryTimeTracker
from timebox.tracking.query import ListOptions, ListResult, SortOrder, query_finished
from timebox.tracking.store import TimeTrackingStore
from timebox.tracking.strategies import InitStrategy, JsonFormat, LoadingStrategy, StorageStrategy
from timebox.tracking.types import (
    LocalTimezone,
    TimeBox,
    TimeBoxNote,
    TrackerState,
    check_state,
    utc_now,
)

__all__ = [
    # Entities
    "TimeBox",
    "TimeBoxNote",
    "TrackerState",
    "check_state",
    "utc_now",
    "LocalTimezone",
    # Listing
    "FilterKind",
    "ListFilter",
    "TimeWindow",
    "parse_list_filter",
    "resolve",
    "ListOptions",
    "ListResult",
    "SortOrder",
    "query_finished",
    # Store
    "TimeTrackingStore",
    "InMemoryTimeTracker",
    # Strategies
    "InitStrategy",
    "LoadingStrategy",
    "StorageStrategy",
    "JsonFormat",
    # Errors
    "TimeTrackingError",
    "AlreadyActiveError",
    "NoActiveBoxError",
    "NoFinishedBoxesError",
    "ActiveBoxPresentError",
    "UnsortedNotesError",
    "InvalidListOptionsError",
    "InvalidDateSpecError",
    "InvalidRangeError",
    "StorageError",
    "AlreadyExistsError",
    "StateNotFoundError",
    "CorruptStateError",
    "StorageIOError",
]
