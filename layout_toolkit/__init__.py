"""Top-level package for the document tree edit engine of Layout Toolkit.

Front-ends (canvas, layers panel, properties panel...) should only depend on
the public API exposed here rather than importing internal modules directly.
"""

from .core.models import Node, create_root  # re-export for convenience
from .core.services import EditError, OperationResult, TreeEditingService, UndoService, SelectionService
from .core.tree_store import TreeStore

__all__: list[str] = [
    "Node",
    "create_root",
    "EditError",
    "OperationResult",
    "TreeEditingService",
    "UndoService",
    "SelectionService",
    "TreeStore",
]
