"""Shared fixtures for the time tracker tests."""

from datetime import datetime, timedelta, timezone

import pytest

from timebox.tracking import TimeBox, TimeBoxNote, TrackerState


class FakeClock:
    """Clock returning a fixed instant that tests move forward by hand."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingStorage:
    """Storage strategy keeping every saved state in memory."""

    def __init__(self) -> None:
        self.saved: list[TrackerState] = []

    def save(self, state: TrackerState) -> None:
        self.saved.append(state.model_copy(deep=True))


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_box(start: datetime, *descriptions: str, minutes: int = 60) -> TimeBox:
    """Build a finished-looking box: one note at ``start``, the rest spread over ``minutes``."""
    descriptions = descriptions or ("work",)
    step = timedelta(minutes=minutes) / max(len(descriptions) - 1, 1)
    notes = [
        TimeBoxNote(time=start + step * index, description=description)
        for index, description in enumerate(descriptions)
    ]
    return TimeBox(notes=notes)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utc(2025, 1, 2, 12))


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def sample_state() -> TrackerState:
    """A state with two finished boxes and an active one."""
    return TrackerState(
        active=make_box(utc(2025, 1, 2, 9), "planning", "coding"),
        finished=[
            make_box(utc(2025, 1, 1, 10), "review", "merge"),
            make_box(utc(2025, 1, 1, 14), "support"),
        ],
    )
