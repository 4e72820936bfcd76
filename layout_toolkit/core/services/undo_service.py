from __future__ import annotations

"""Undo/redo snapshot management for the document tree.

This service is UI-agnostic and performs pure in-memory history tracking.
A snapshot is the root :class:`Node` of a tree; since nodes are immutable and
edits copy only the path to the edited node, consecutive snapshots share all
untouched subtrees and storing one costs little more than that path.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- History is a single linear timeline: an ordered list of snapshots and a
  cursor. Recording after an undo discards everything past the cursor.
- Memory usage controlled by a max_history policy (trim oldest).
"""

from typing import List, Optional

from layout_toolkit.core.models import Node

__all__ = ["UndoService"]


class UndoService:
    """Manage the undo/redo timeline of tree snapshots.

    Parameters
    ----------
    initial
        Snapshot stored at index 0. When omitted the history stays empty
        until the first :meth:`push_snapshot` or :meth:`reset`.
    max_history : int, default=100
        Maximum number of snapshots kept, the current one included. Oldest
        entries are discarded when the capacity is exceeded. Must be >= 1; if
        passed lower, it will be coerced to 1.

    Examples
    --------
    >>> svc = UndoService(tree_v0)
    >>> svc.push_snapshot(tree_v1)
    >>> svc.undo() is tree_v0
    True
    >>> svc.redo() is tree_v1
    True
    """

    def __init__(self, initial: Optional[Node] = None, max_history: int = 100) -> None:
        self._max_history: int = max(1, int(max_history))
        self._snapshots: List[Node] = []
        self._index: int = -1
        if initial is not None:
            self.reset(initial)

    # --------------------------------------------------------------------- API

    @property
    def current(self) -> Optional[Node]:
        """The snapshot at the cursor, or None for an empty history."""
        if self._index < 0:
            return None
        return self._snapshots[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def max_history(self) -> int:
        return self._max_history

    def __len__(self) -> int:
        return len(self._snapshots)

    def reset(self, snapshot: Node) -> None:
        """Drop all history and start again from ``snapshot``."""
        self._snapshots = [snapshot]
        self._index = 0

    def push_snapshot(self, snapshot: Node) -> None:
        """Record ``snapshot`` as the newest state.

        Snapshots after the cursor (the redo branch) are discarded, the new one
        is appended and becomes current. If the history exceeds max_history,
        the oldest snapshots are dropped.
        """
        del self._snapshots[self._index + 1:]
        self._snapshots.append(snapshot)
        overflow = len(self._snapshots) - self._max_history
        if overflow > 0:
            del self._snapshots[0:overflow]
        self._index = len(self._snapshots) - 1

    def undo(self) -> Optional[Node]:
        """Step back one snapshot and return it; None when already at the oldest."""
        if not self.can_undo():
            return None
        self._index -= 1
        return self._snapshots[self._index]

    def redo(self) -> Optional[Node]:
        """Step forward one snapshot and return it; None when already at the newest."""
        if not self.can_redo():
            return None
        self._index += 1
        return self._snapshots[self._index]

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return self._index > 0

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return 0 <= self._index < len(self._snapshots) - 1

    def clear(self) -> None:
        """Keep only the current snapshot, forgetting undo and redo history."""
        current = self.current
        self._snapshots = []
        self._index = -1
        if current is not None:
            self.reset(current)
