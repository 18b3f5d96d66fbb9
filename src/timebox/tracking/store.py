"""The operation set every time tracking store implements.

A store is either idle (no active time box) or active (exactly one). The
table below is the full state machine; every implementation must raise the
listed error instead of changing state when a precondition fails.

==========  ============================  ========  =========================
Operation   Precondition                  Result    Error
==========  ============================  ========  =========================
begin       idle                          active    AlreadyActiveError
note        active                        active    NoActiveBoxError
amend       active                        active    NoActiveBoxError
end         active                        idle      NoActiveBoxError
resume      idle, finished not empty      active    AlreadyActiveError /
                                                    NoFinishedBoxesError
cancel      active                        idle      NoActiveBoxError
clear       idle                          idle      ActiveBoxPresentError
==========  ============================  ========  =========================

Mutations are persisted before they return. When persisting fails the
store keeps its previous state and the storage error propagates.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from timebox.tracking.query import ListOptions, ListResult
from timebox.tracking.types import TimeBox


class TimeTrackingStore(ABC):
    """Abstract time tracking store.

    All returned time boxes are snapshots; modifying them never affects
    the store.
    """

    @abstractmethod
    def active(self) -> TimeBox | None:
        """Return the active time box if there is one."""
        ...

    def status(self) -> TimeBox | None:
        """Alias of :meth:`active`."""
        return self.active()

    @abstractmethod
    def finished(
        self,
        options: ListOptions | None = None,
        now: datetime | None = None,
    ) -> ListResult:
        """List finished time boxes.

        Args:
            options: Filter, order and pagination. Defaults to the first page.
            now: Reference instant for relative date filters. Defaults to
                the store clock in local time.
        """
        ...

    @abstractmethod
    def begin(self, description: str) -> TimeBox:
        """Begin working on something. Returns the new active time box."""
        ...

    @abstractmethod
    def note(self, description: str, end: bool = False) -> TimeBox:
        """Add a note to the active time box, optionally ending it right after.

        Returns:
            The annotated time box (finished if ``end`` was set).
        """
        ...

    @abstractmethod
    def amend(self, description: str) -> TimeBox:
        """Change the description of the active time box's last note."""
        ...

    @abstractmethod
    def end(self, description: str | None = None) -> TimeBox:
        """End the active time box, with an optional closing note.

        Returns:
            The time box that was just finished.
        """
        ...

    @abstractmethod
    def resume(self) -> TimeBox:
        """Make the last finished time box active again."""
        ...

    @abstractmethod
    def cancel(self) -> TimeBox:
        """Discard the active time box without archiving it. Returns it."""
        ...

    @abstractmethod
    def clear(self) -> int:
        """Remove all finished time boxes. Returns how many were removed."""
        ...
