"""Error types raised by the time tracking store and its strategies.

Every error derives from :class:`TimeTrackingError` so callers can surface
them uniformly. None of them is fatal; the store never leaves its state
half-modified when one is raised.
"""

from datetime import date


class TimeTrackingError(Exception):
    """Base class for all time tracking errors."""


# -- state machine ----------------------------------------------------------


class AlreadyActiveError(TimeTrackingError):
    """Raised when beginning or resuming while a time box is active."""

    def __init__(self, message: str = "A time box is already active") -> None:
        super().__init__(message)


class NoActiveBoxError(TimeTrackingError):
    """Raised when an operation needs an active time box and there is none."""

    def __init__(self, message: str = "There is no active time box") -> None:
        super().__init__(message)


class NoFinishedBoxesError(TimeTrackingError):
    """Raised when resuming without any finished time box."""

    def __init__(self, message: str = "There are no finished time boxes") -> None:
        super().__init__(message)


class ActiveBoxPresentError(TimeTrackingError):
    """Raised when clearing finished boxes while a time box is active."""

    def __init__(
        self,
        message: str = "There is an active time box, end or cancel it first",
    ) -> None:
        super().__init__(message)


class UnsortedNotesError(TimeTrackingError):
    """Raised when a note would come before the previous note of its box."""


# -- listing ----------------------------------------------------------------


class InvalidListOptionsError(TimeTrackingError, ValueError):
    """Raised for list options that cannot be applied (e.g. limit of zero)."""


class InvalidDateSpecError(TimeTrackingError, ValueError):
    """Raised when a date filter token cannot be parsed."""

    def __init__(self, token: str, reason: str | None = None) -> None:
        self.token = token
        message = f"Invalid date or range '{token}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidRangeError(TimeTrackingError, ValueError):
    """Raised when a date range starts after it ends."""

    def __init__(self, start: date, end: date) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Start date {start.isoformat()} must be before or equal to end date {end.isoformat()}"
        )


# -- persistence ------------------------------------------------------------


class StorageError(TimeTrackingError):
    """Base class for persistence failures."""


class AlreadyExistsError(StorageError):
    """Raised by init strategies when the backing resource already exists."""


class StateNotFoundError(StorageError):
    """Raised by loading strategies when there is no persisted state yet."""


class CorruptStateError(StorageError):
    """Raised when persisted state cannot be parsed or violates invariants."""


class StorageIOError(StorageError):
    """Raised when reading or writing the backing resource fails."""
