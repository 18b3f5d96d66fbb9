"""SQLite persistence for the time tracking store.

Stores the same state as the JSON backend in two tables. Saving replaces
every row inside a single transaction, which gives the same all-or-nothing
guarantee as the JSON swap file.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from timebox.storage.common import validate_loaded, write_gitignore
from timebox.tracking.errors import (
    AlreadyExistsError,
    CorruptStateError,
    StateNotFoundError,
    StorageIOError,
)
from timebox.tracking.types import TimeBox, TimeBoxNote, TrackerState

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- Finished boxes keep their list position, the active box has none
CREATE TABLE IF NOT EXISTS time_boxes (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    position    INTEGER,
    is_active   INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS time_box_notes (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    box_id      INTEGER NOT NULL REFERENCES time_boxes(id) ON DELETE CASCADE,
    seq         INTEGER NOT NULL,
    time        TEXT NOT NULL,
    description TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_time_box_notes_box ON time_box_notes(box_id, seq);
"""


def _init_schema(path: Path) -> None:
    with sqlite3.connect(path) as conn:
        conn.executescript(SCHEMA_SQL)


class SqliteInit:
    """Creates an empty SQLite time tracker database."""

    def __init__(self, path: str | Path, gitignore: bool = True) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the SQLite database file.
            gitignore: Also drop a ``.gitignore`` ignoring the storage directory.
        """
        self._path = Path(path)
        self._gitignore = gitignore

    @property
    def path(self) -> Path:
        return self._path

    def init(self) -> None:
        if self._path.exists():
            raise AlreadyExistsError(f"Time tracker already exists on path: {self._path}")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            _init_schema(self._path)
        except (OSError, sqlite3.Error) as e:
            raise StorageIOError(f"Failed creating time tracker database {self._path}: {e}") from e

        logger.info(f"Created time tracker database: {self._path}")

        if self._gitignore:
            write_gitignore(self._path.parent)


class SqliteLoader:
    """Loads state from a SQLite time tracker database."""

    def __init__(self, path: str | Path, repair: bool = False) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the SQLite database file.
            repair: Sort unsorted notes and boxes instead of rejecting the data.
        """
        self._path = Path(path)
        self._repair = repair

    @property
    def path(self) -> Path:
        return self._path

    def _read_box(self, conn: sqlite3.Connection, box_id: int) -> TimeBox:
        cursor = conn.execute(
            "SELECT time, description FROM time_box_notes WHERE box_id = ? ORDER BY seq ASC",
            (box_id,),
        )
        notes = [
            TimeBoxNote(time=datetime.fromisoformat(row["time"]), description=row["description"])
            for row in cursor.fetchall()
        ]
        return TimeBox(notes=notes)

    def load(self) -> TrackerState:
        # sqlite3.connect would silently create a missing database
        if not self._path.exists():
            raise StateNotFoundError(f"Time tracker database not found: {self._path}")

        try:
            with sqlite3.connect(self._path) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(
                    "SELECT id, is_active FROM time_boxes ORDER BY is_active ASC, position ASC"
                ).fetchall()

                active: TimeBox | None = None
                finished: list[TimeBox] = []
                for row in rows:
                    box = self._read_box(conn, row["id"])
                    if row["is_active"]:
                        if active is not None:
                            raise CorruptStateError(
                                f"More than one active time box in {self._path}"
                            )
                        active = box
                    else:
                        finished.append(box)
        except sqlite3.DatabaseError as e:
            raise CorruptStateError(f"Failed to read time tracker database {self._path}: {e}") from e
        except ValueError as e:
            raise CorruptStateError(f"Invalid time box in {self._path}: {e}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to read time tracker database {self._path}: {e}") from e

        state = TrackerState(active=active, finished=finished)
        logger.debug(f"Loaded {len(finished)} finished time boxes from {self._path}")
        return validate_loaded(state, self._path, repair=self._repair)


class SqliteStorage:
    """Writes state to a SQLite time tracker database."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the strategy.

        Args:
            path: Path of the SQLite database file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _insert_box(
        conn: sqlite3.Connection,
        box: TimeBox,
        position: int | None,
        is_active: bool,
    ) -> None:
        cursor = conn.execute(
            "INSERT INTO time_boxes (position, is_active) VALUES (?, ?)",
            (position, int(is_active)),
        )
        box_id = cursor.lastrowid
        conn.executemany(
            "INSERT INTO time_box_notes (box_id, seq, time, description) VALUES (?, ?, ?, ?)",
            [
                (box_id, seq, note.time.isoformat(), note.description)
                for seq, note in enumerate(box.notes)
            ],
        )

    def save(self, state: TrackerState) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            _init_schema(self._path)
            # The connection context commits on success and rolls back on error
            with sqlite3.connect(self._path) as conn:
                conn.execute("PRAGMA foreign_keys = ON")
                conn.execute("DELETE FROM time_box_notes")
                conn.execute("DELETE FROM time_boxes")
                for position, box in enumerate(state.finished):
                    self._insert_box(conn, box, position, is_active=False)
                if state.active is not None:
                    self._insert_box(conn, state.active, None, is_active=True)
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to write time tracker database {self._path}: {e}")
            raise StorageIOError(f"Failed to write time tracker database {self._path}: {e}") from e

        logger.debug(f"Saved {len(state.finished)} finished time boxes to {self._path}")
