"""In-memory time tracking store backed by a pluggable storage strategy.

Intended for single-user local tracking: the whole state lives in memory
and is written out in full after every mutation.
"""

import logging
from collections.abc import Callable
from datetime import datetime, tzinfo
from typing import TypeVar

from timebox.tracking.errors import (
    ActiveBoxPresentError,
    AlreadyActiveError,
    NoActiveBoxError,
    NoFinishedBoxesError,
    StateNotFoundError,
    StorageIOError,
)
from timebox.tracking.query import ListOptions, ListResult, query_finished
from timebox.tracking.store import TimeTrackingStore
from timebox.tracking.strategies import LoadingStrategy, StorageStrategy
from timebox.tracking.types import (
    Clock,
    LocalTimezone,
    TimeBox,
    TimeBoxNote,
    TrackerState,
    utc_now,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryTimeTracker(TimeTrackingStore):
    """Time tracking store holding its state in memory.

    Example:
        tracker = InMemoryTimeTracker.open(JsonFileLoader(path), JsonFileStorage(path))
        tracker.begin("Write release notes")
        tracker.note("Reviewed changelog", end=True)
    """

    def __init__(
        self,
        state: TrackerState | None = None,
        storage: StorageStrategy | None = None,
        clock: Clock = utc_now,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            state: Initial state, copied. Defaults to an empty store.
            storage: Where mutations are persisted. None keeps everything
                in memory only.
            clock: Source of the current UTC instant.
            tz: Timezone whose calendar date filters follow, e.g. a
                ``ZoneInfo``. Defaults to the system timezone.
        """
        self._state = state.model_copy(deep=True) if state is not None else TrackerState()
        self._storage = storage
        self._clock = clock
        self._tz = tz if tz is not None else LocalTimezone()

    @classmethod
    def open(
        cls,
        loader: LoadingStrategy,
        storage: StorageStrategy | None = None,
        clock: Clock = utc_now,
        tz: tzinfo | None = None,
        missing_ok: bool = False,
    ) -> "InMemoryTimeTracker":
        """Build a tracker from persisted state.

        Args:
            loader: Strategy to read the state with.
            storage: Strategy mutations are persisted with.
            clock: Source of the current UTC instant.
            tz: Timezone whose calendar date filters follow.
            missing_ok: Start empty when nothing was persisted yet instead
                of raising StateNotFoundError.
        """
        try:
            state = loader.load()
        except StateNotFoundError:
            if not missing_ok:
                raise
            logger.debug("No persisted state found, starting with an empty store")
            state = TrackerState()
        return cls(state=state, storage=storage, clock=clock, tz=tz)

    # -- persistence ------------------------------------------------------

    def _persist(self, state: TrackerState) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(state)
        except OSError as e:
            raise StorageIOError(f"Failed to persist time tracking state: {e}") from e

    def _commit(self, mutate: Callable[[TrackerState], T]) -> T:
        """Apply a mutation to a copy of the state, persist it, then adopt it.

        The current state is only replaced once the copy was stored, so a
        failing storage leaves the tracker exactly as it was.
        """
        candidate = self._state.model_copy(deep=True)
        result = mutate(candidate)
        try:
            self._persist(candidate)
        except Exception:
            logger.error("Persisting failed, discarding the in-memory change")
            raise
        self._state = candidate
        return result

    def save(self) -> None:
        """Persist the current state as is."""
        self._persist(self._state)

    # -- queries ------------------------------------------------------------

    @property
    def timezone(self) -> tzinfo:
        """Timezone whose calendar date filters follow."""
        return self._tz

    def state(self) -> TrackerState:
        """Snapshot of the complete state."""
        return self._state.model_copy(deep=True)

    def active(self) -> TimeBox | None:
        if self._state.active is None:
            return None
        return self._state.active.model_copy(deep=True)

    def finished(
        self,
        options: ListOptions | None = None,
        now: datetime | None = None,
    ) -> ListResult:
        if options is None:
            options = ListOptions()
        if now is None:
            now = self._clock().astimezone(self._tz)
        result = query_finished(self._state.finished, options, now)
        return result.model_copy(deep=True)

    # -- mutations ------------------------------------------------------------

    def _new_note(self, description: str) -> TimeBoxNote:
        return TimeBoxNote(time=self._clock(), description=description.strip())

    @staticmethod
    def _require_active(state: TrackerState) -> TimeBox:
        if state.active is None:
            raise NoActiveBoxError()
        return state.active

    @staticmethod
    def _finish(state: TrackerState) -> TimeBox:
        box = InMemoryTimeTracker._require_active(state)
        if len(box.notes) == 1:
            logger.warning("The time box only has one note, its duration is zero")
        state.active = None
        state.finished.append(box)
        return box

    def begin(self, description: str) -> TimeBox:
        def _begin(state: TrackerState) -> TimeBox:
            if state.active is not None:
                raise AlreadyActiveError(
                    "A time box is already active, end or cancel it before beginning a new one"
                )
            state.active = TimeBox(notes=[self._new_note(description)])
            return state.active

        box = self._commit(_begin)
        logger.info("Began a new time box")
        return box.model_copy(deep=True)

    def note(self, description: str, end: bool = False) -> TimeBox:
        def _note(state: TrackerState) -> TimeBox:
            box = self._require_active(state)
            box.push_note(self._new_note(description))
            if end:
                self._finish(state)
            return box

        box = self._commit(_note)
        logger.info("Added a note and ended the time box" if end else "Added a note")
        return box.model_copy(deep=True)

    def amend(self, description: str) -> TimeBox:
        def _amend(state: TrackerState) -> TimeBox:
            box = self._require_active(state)
            box.amend_last(description.strip())
            return box

        box = self._commit(_amend)
        logger.info("Amended the last note")
        return box.model_copy(deep=True)

    def end(self, description: str | None = None) -> TimeBox:
        def _end(state: TrackerState) -> TimeBox:
            box = self._require_active(state)
            if description is not None:
                closing = self._new_note(description)
                last = box.notes[-1]
                # no duplicate when the closing note repeats the last one at the same instant
                if (closing.time, closing.description) != (last.time, last.description):
                    box.push_note(closing)
            return self._finish(state)

        box = self._commit(_end)
        logger.info(f"Ended the time box after {box.duration_in_hours():.2f}h")
        return box.model_copy(deep=True)

    def resume(self) -> TimeBox:
        def _resume(state: TrackerState) -> TimeBox:
            if state.active is not None:
                raise AlreadyActiveError("A time box is already active, nothing to resume")
            if not state.finished:
                raise NoFinishedBoxesError()
            state.active = state.finished.pop()
            return state.active

        box = self._commit(_resume)
        logger.info("Resumed the last finished time box")
        return box.model_copy(deep=True)

    def cancel(self) -> TimeBox:
        def _cancel(state: TrackerState) -> TimeBox:
            box = self._require_active(state)
            state.active = None
            return box

        box = self._commit(_cancel)
        logger.info("Canceled the active time box")
        return box.model_copy(deep=True)

    def clear(self) -> int:
        if self._state.active is not None:
            raise ActiveBoxPresentError()
        if not self._state.finished:
            logger.warning("Clearing did nothing because there are no finished time boxes")
            return 0

        def _clear(state: TrackerState) -> int:
            count = len(state.finished)
            state.finished = []
            return count

        count = self._commit(_clear)
        logger.info(f"Cleared {count} finished time box(es)")
        return count
