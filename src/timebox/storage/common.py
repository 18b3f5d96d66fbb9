"""Helpers shared by the storage backends."""

import logging
from pathlib import Path

from timebox.tracking.errors import CorruptStateError, UnsortedNotesError
from timebox.tracking.types import TrackerState, check_state, sort_state

logger = logging.getLogger(__name__)

GITIGNORE_NAME = ".gitignore"


def validate_loaded(state: TrackerState, source: Path, repair: bool = False) -> TrackerState:
    """Check the ordering invariants of freshly loaded state.

    Persisted files can be edited by hand, so ordering is verified on every
    load.

    Args:
        state: The parsed state.
        source: Where it was loaded from, for messages.
        repair: Sort unsorted notes and boxes in memory instead of failing.

    Raises:
        CorruptStateError: If the state is unsorted and ``repair`` is off.
    """
    try:
        check_state(state)
    except UnsortedNotesError as e:
        if not repair:
            raise CorruptStateError(f"Invalid time tracking state in {source}: {e}") from e
        logger.warning(f"{e} in {source}, sorting in memory now")
        sort_state(state)
    return state


def write_gitignore(directory: Path) -> None:
    """Create a ``.gitignore`` ignoring everything in ``directory`` if absent.

    A failure is only logged, the state created before stays in place.
    """
    path = directory / GITIGNORE_NAME
    if path.exists():
        return
    try:
        path.write_text("*", encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed creating .gitignore file at {path}: {e}")
        return
    logger.debug(f"Created a new .gitignore file: {path}")
