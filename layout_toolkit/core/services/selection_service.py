from __future__ import annotations

"""Tracks the active node and falls back to the root when it disappears."""

import logging
from typing import Iterable

from layout_toolkit.core.locator import find_by_id
from layout_toolkit.core.models import Node

__all__ = ["SelectionService"]

logger = logging.getLogger(__name__)


class SelectionService:
    """Holds the id of the currently selected node.

    The root id is the fallback whenever the selected node stops existing,
    so the selection always names a node of the current tree.
    """

    def __init__(self, root_id: str) -> None:
        self._root_id = root_id
        self._selected_id = root_id

    @property
    def root_id(self) -> str:
        return self._root_id

    @property
    def selected_id(self) -> str:
        return self._selected_id

    def select(self, node_id: str) -> None:
        self._selected_id = node_id

    def reset(self) -> None:
        """Select the root."""
        self._selected_id = self._root_id

    def on_nodes_removed(self, removed_ids: Iterable[str]) -> bool:
        """Reset to the root if the selected node was among ``removed_ids``.

        Returns True when the selection changed.
        """
        if self._selected_id in set(removed_ids):
            logger.debug("Selected node %s removed; selecting root", self._selected_id)
            self.reset()
            return True
        return False

    def reconcile(self, tree: Node) -> bool:
        """Reset to the root if the selected node is missing from ``tree``."""
        if self._selected_id != tree.id and find_by_id(tree, self._selected_id) is None:
            logger.debug("Selected node %s missing from tree; selecting root", self._selected_id)
            self.reset()
            return True
        return False

    def resolve(self, tree: Node) -> Node:
        """Return the selected node, or the tree root when it cannot be found."""
        return find_by_id(tree, self._selected_id) or tree
