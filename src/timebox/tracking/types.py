"""Entity model for time tracking.

A time box is a linear journal of notes. Its first note marks when work
began and its last note marks when it stopped, so durations are always
derived from the notes themselves.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone, tzinfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timebox.tracking.errors import UnsortedNotesError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current instant in UTC."""
    return datetime.now(timezone.utc)


class LocalTimezone(tzinfo):
    """The operating system's timezone, including its daylight saving rules.

    ``datetime.astimezone()`` without an argument yields a fixed offset valid
    only for that one instant. This looks the offset up again for every
    wall time, so midnights on both sides of a DST switch come out right.
    """

    @staticmethod
    def _localize(dt: datetime) -> datetime:
        # A naive datetime is interpreted as system local time
        return dt.replace(tzinfo=None).astimezone()

    def utcoffset(self, dt: datetime | None) -> timedelta | None:
        if dt is None:
            return None
        return self._localize(dt).utcoffset()

    def dst(self, dt: datetime | None) -> timedelta | None:
        if dt is None:
            return None
        return self._localize(dt).dst()

    def tzname(self, dt: datetime | None) -> str | None:
        if dt is None:
            return None
        return self._localize(dt).tzname()

    def fromutc(self, dt: datetime) -> datetime:
        local = dt.replace(tzinfo=timezone.utc).astimezone()
        return local.replace(tzinfo=self)

    def __repr__(self) -> str:
        return "LocalTimezone()"


class TimeBoxNote(BaseModel):
    """An immutable journal entry of a time box.

    Attributes:
        time: Instant the note was written, always stored in UTC.
        description: Free text, may span several lines.
    """

    model_config = ConfigDict(frozen=True)

    time: datetime = Field(..., description="Instant the note was written (UTC)")
    description: str = Field(default="", description="Free text of the note")

    @field_validator("time")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimeBox(BaseModel):
    """A bounded work session made of at least one note.

    Attributes:
        notes: Notes in the order they were written.
    """

    notes: list[TimeBoxNote] = Field(..., min_length=1, description="Chronological notes")

    def time_start(self) -> datetime:
        """Instant of the first note."""
        return self.notes[0].time

    def time_stop(self) -> datetime:
        """Instant of the last note."""
        return self.notes[-1].time

    def duration(self) -> timedelta:
        """Time between the first and the last note, zero for a single note."""
        return self.time_stop() - self.time_start()

    def duration_in_minutes(self) -> float:
        return self.duration().total_seconds() / 60.0

    def duration_in_hours(self) -> float:
        return self.duration().total_seconds() / 60.0 / 60.0

    def active_duration(self, now: datetime) -> timedelta:
        """Time elapsed since the box began, for a box that is still running."""
        return now - self.time_start()

    def is_sorted(self) -> bool:
        """Whether every note is at or after its predecessor."""
        return all(a.time <= b.time for a, b in zip(self.notes, self.notes[1:]))

    def push_note(self, note: TimeBoxNote) -> None:
        """Append a note, refusing one that predates the current last note.

        Raises:
            UnsortedNotesError: If ``note.time`` is earlier than the last note.
        """
        last = self.notes[-1]
        if note.time < last.time:
            raise UnsortedNotesError(
                f"Note at {note.time.isoformat()} is earlier than the previous note "
                f"at {last.time.isoformat()}"
            )
        self.notes.append(note)

    def amend_last(self, description: str) -> None:
        """Replace the description of the last note, keeping its time."""
        self.notes[-1] = self.notes[-1].model_copy(update={"description": description})


class TrackerState(BaseModel):
    """The complete persisted state of a store.

    Attributes:
        active: The time box currently being worked on, if any.
        finished: Ended time boxes in the order they were ended.
    """

    active: TimeBox | None = Field(default=None, description="Active time box")
    finished: list[TimeBox] = Field(default_factory=list, description="Finished time boxes")


def check_state(state: TrackerState) -> None:
    """Validate note and box ordering of a state.

    Emptiness is already enforced when the models are built, this covers
    what pydantic cannot see: notes inside every box must be chronological
    and finished boxes must be ordered by their start instant.

    Raises:
        UnsortedNotesError: Describing the first violation found.
    """
    if state.active is not None and not state.active.is_sorted():
        raise UnsortedNotesError("Notes of the active time box are not chronological")

    previous_start: datetime | None = None
    for index, box in enumerate(state.finished):
        if not box.is_sorted():
            raise UnsortedNotesError(f"Notes of finished time box #{index} are not chronological")
        if previous_start is not None and box.time_start() < previous_start:
            raise UnsortedNotesError(
                f"Finished time box #{index} starts before the time box preceding it"
            )
        previous_start = box.time_start()


def sort_state(state: TrackerState) -> None:
    """Sort notes of every box and finished boxes by start instant, in place."""
    if state.active is not None:
        state.active.notes.sort(key=lambda note: note.time)
    for box in state.finished:
        box.notes.sort(key=lambda note: note.time)
    state.finished.sort(key=lambda box: box.time_start())
