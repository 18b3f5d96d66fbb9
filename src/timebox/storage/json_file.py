"""JSON file persistence for the time tracking store.

The whole state is one JSON document:

    {"active": {"notes": [...]} | null, "finished": [{"notes": [...]}, ...]}

Writes go to a swap file next to the target which then replaces it, so a
crash leaves either the old or the new document on disk.
"""

import logging
import os
import time
from pathlib import Path

from pydantic import ValidationError

from timebox.storage.common import validate_loaded, write_gitignore
from timebox.tracking.errors import (
    AlreadyExistsError,
    CorruptStateError,
    StateNotFoundError,
    StorageIOError,
)
from timebox.tracking.strategies import JsonFormat
from timebox.tracking.types import TrackerState

logger = logging.getLogger(__name__)


def serialize_state(state: TrackerState, json_format: JsonFormat = JsonFormat.PRETTY) -> str:
    """Render a state as JSON in the requested density."""
    indent = 2 if json_format == JsonFormat.PRETTY else None
    return state.model_dump_json(indent=indent)


class JsonFileInit:
    """Creates an empty JSON state file.

    Example:
        JsonFileInit(".timebox-tracker/time_boxes.json").init()
    """

    def __init__(
        self,
        path: str | Path,
        json_format: JsonFormat = JsonFormat.PRETTY,
        gitignore: bool = True,
    ) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the JSON state file.
            json_format: Density of the written JSON.
            gitignore: Also drop a ``.gitignore`` ignoring the storage directory.
        """
        self._path = Path(path)
        self._json_format = json_format
        self._gitignore = gitignore

    @property
    def path(self) -> Path:
        return self._path

    def init(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed creating directory {self._path.parent}: {e}") from e

        try:
            with open(self._path, "x", encoding="utf-8") as f:
                f.write(serialize_state(TrackerState(), self._json_format))
        except FileExistsError as e:
            raise AlreadyExistsError(f"Time tracker already exists on path: {self._path}") from e
        except OSError as e:
            raise StorageIOError(f"Failed creating time tracker file {self._path}: {e}") from e

        logger.info(f"Created time tracker file: {self._path}")

        if self._gitignore:
            write_gitignore(self._path.parent)


class JsonFileLoader:
    """Loads state from a JSON state file."""

    def __init__(self, path: str | Path, repair: bool = False) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the JSON state file.
            repair: Sort unsorted notes and boxes instead of rejecting the file.
        """
        self._path = Path(path)
        self._repair = repair

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TrackerState:
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StateNotFoundError(f"Time tracker file not found: {self._path}") from e
        except UnicodeDecodeError as e:
            raise CorruptStateError(f"Time tracker file {self._path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to read time tracker file {self._path}: {e}") from e

        if not content.strip():
            return TrackerState()

        try:
            state = TrackerState.model_validate_json(content)
        except ValidationError as e:
            raise CorruptStateError(
                f"Failed to deserialize time tracker file {self._path}: {e}"
            ) from e

        logger.debug(
            f"Loaded {len(state.finished)} finished time boxes from {self._path}"
        )
        return validate_loaded(state, self._path, repair=self._repair)


class JsonFileStorage:
    """Writes state to a JSON state file through a swap file."""

    def __init__(self, path: str | Path, json_format: JsonFormat = JsonFormat.PRETTY) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the JSON state file.
            json_format: Density of the written JSON.
        """
        self._path = Path(path)
        self._json_format = json_format

    @property
    def path(self) -> Path:
        return self._path

    def _swap_path(self) -> Path:
        micros = time.time_ns() // 1000
        return self._path.parent / f".__{micros}_swap_{self._path.name}"

    def save(self, state: TrackerState) -> None:
        content = serialize_state(state, self._json_format)
        swap = self._swap_path()

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(swap, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            logger.debug(f"Serialized state to swap file: {swap}")
            os.replace(swap, self._path)
        except OSError as e:
            logger.error(f"Failed replacing {self._path} with swap file {swap}: {e}")
            if swap.exists():
                swap.unlink()
            raise StorageIOError(f"Failed to write time tracker file {self._path}: {e}") from e

        logger.debug(f"Replaced {self._path} with the new state")
