"""timebox - A personal time tracker built on time boxes of timestamped notes."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("timebox-tracker")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from timebox.tracking import InMemoryTimeTracker, TimeBox, TimeBoxNote, TimeTrackingStore

__all__ = ["InMemoryTimeTracker", "TimeTrackingStore", "TimeBox", "TimeBoxNote"]
