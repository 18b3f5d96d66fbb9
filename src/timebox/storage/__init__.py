"""Persistence backends for the time tracking store.

Each backend provides an init, a loading and a storage strategy. They are
independent of each other and of the store, see
:mod:`timebox.tracking.strategies`.

Example:
    from timebox.config import settings
    from timebox.storage import create_backend
    from timebox.tracking import InMemoryTimeTracker

    backend = create_backend(settings)
    tracker = InMemoryTimeTracker.open(backend.loader, backend.storage)
"""

from typing import NamedTuple

from timebox.config import Settings
from timebox.storage.json_file import JsonFileInit, JsonFileLoader, JsonFileStorage
from timebox.storage.sqlite import SqliteInit, SqliteLoader, SqliteStorage
from timebox.tracking.strategies import InitStrategy, LoadingStrategy, StorageStrategy


class StorageBackend(NamedTuple):
    """The three strategies of one persistence backend."""

    initializer: InitStrategy
    loader: LoadingStrategy
    storage: StorageStrategy


def create_backend(config: Settings) -> StorageBackend:
    """Build the strategies for the backend selected in the settings."""
    path = config.get_storage_path()
    if config.backend == "sqlite":
        return StorageBackend(
            initializer=SqliteInit(path),
            loader=SqliteLoader(path, repair=config.repair_on_load),
            storage=SqliteStorage(path),
        )
    return StorageBackend(
        initializer=JsonFileInit(path, json_format=config.json_format),
        loader=JsonFileLoader(path, repair=config.repair_on_load),
        storage=JsonFileStorage(path, json_format=config.json_format),
    )


__all__ = [
    "StorageBackend",
    "create_backend",
    "JsonFileInit",
    "JsonFileLoader",
    "JsonFileStorage",
    "SqliteInit",
    "SqliteLoader",
    "SqliteStorage",
]
