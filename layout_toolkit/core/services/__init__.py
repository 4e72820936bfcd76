from __future__ import annotations

"""Edit-engine services: structural editing, undo/redo and selection.

Services are plain objects wired together by :class:`~layout_toolkit.core.tree_store.TreeStore`.
"""

from .tree_editing_service import EditError, OperationResult, TreeEditingService  # noqa: F401
from .undo_service import UndoService  # noqa: F401
from .selection_service import SelectionService  # noqa: F401

__all__: list[str] = [
    "EditError",
    "OperationResult",
    "TreeEditingService",
    "UndoService",
    "SelectionService",
]
