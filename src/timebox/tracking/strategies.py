"""Persistence capabilities a store is composed with.

Initializing, loading and storing are separate protocols so a store can
mix them freely, e.g. load from one backend and store to another. A
strategy is constructed with its target and options; the protocol methods
only carry the state itself.
"""

from enum import Enum
from typing import Protocol

from timebox.tracking.types import TrackerState


class JsonFormat(str, Enum):
    """Density of serialized JSON. Both round-trip to the same state."""

    COMPACT = "compact"
    PRETTY = "pretty"


class InitStrategy(Protocol):
    """Creates the durable backing resource for an empty store."""

    def init(self) -> None:
        """Create the backing resource if it does not exist yet.

        Raises:
            AlreadyExistsError: If the resource exists. It is never overwritten.
            StorageIOError: If the resource cannot be created.
        """
        ...


class LoadingStrategy(Protocol):
    """Reconstructs a store state from durable storage."""

    def load(self) -> TrackerState:
        """Load the persisted state.

        Raises:
            StateNotFoundError: If nothing has been persisted yet.
            CorruptStateError: If the persisted data is unreadable or invalid.
            StorageIOError: If reading fails for any other reason.
        """
        ...


class StorageStrategy(Protocol):
    """Persists a full store state, replacing what was stored before."""

    def save(self, state: TrackerState) -> None:
        """Write the state atomically.

        Either the previous content or the complete new content survives a
        crash, never a partial write.

        Raises:
            StorageIOError: If the state could not be written.
        """
        ...
