from __future__ import annotations

"""Composition root of the edit engine.

:class:`TreeStore` owns the current tree and coordinates the services: it asks
:class:`TreeEditingService` for a new snapshot, commits it, records it in the
undo history and keeps the selection valid. Presentation layers hold a
reference to one store (it is passed to them, never looked up globally) and
re-render from :attr:`TreeStore.tree` when notified.

All operations run synchronously to completion; a host that edits from several
threads must funnel every call through a single writer.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from layout_toolkit.config import ConfigManager
from layout_toolkit.core.locator import find_by_id
from layout_toolkit.core.models import DEFAULT_ROOT_ID, Node, create_root
from layout_toolkit.core.services.selection_service import SelectionService
from layout_toolkit.core.services.tree_editing_service import OperationResult, TreeEditingService
from layout_toolkit.core.services.undo_service import UndoService

__all__ = ["TreeStore", "RECORDED_OPERATIONS"]

logger = logging.getLogger(__name__)

RECORDED_OPERATIONS = ("add", "update", "delete", "move", "reorder", "duplicate")

Subscriber = Callable[["TreeStore"], None]


class TreeStore:
    """Holds the document tree and applies edit intents to it.

    Parameters
    ----------
    tree
        Initial tree. Defaults to the root described by ``editor.yml``.
    editing_service, undo_service, selection_service
        Collaborators; built from configuration when omitted.
    record_history
        Per-operation switches (keys from :data:`RECORDED_OPERATIONS`)
        overriding ``history.record`` in ``editor.yml``. Every operation is
        recorded unless switched off.
    config_manager
        Source of defaults for anything not passed explicitly.

    Notes
    -----
    - Mutating methods return the :class:`OperationResult` from the editing
      service. Rejected edits leave the tree, history and selection untouched.
    - Edits that change nothing (same tree object returned) are not recorded.
    """

    def __init__(
        self,
        tree: Optional[Node] = None,
        editing_service: Optional[TreeEditingService] = None,
        undo_service: Optional[UndoService] = None,
        selection_service: Optional[SelectionService] = None,
        record_history: Optional[Mapping[str, bool]] = None,
        config_manager: Optional[ConfigManager] = None,
    ) -> None:
        config_manager = config_manager or ConfigManager()
        editor_cfg = config_manager.get_editor_config()
        history_cfg = config_manager.get_history_config()

        if tree is None:
            tree = self._root_from_config(editor_cfg)
        self._tree: Node = tree

        self.editing_service: TreeEditingService = editing_service or TreeEditingService(config_manager=config_manager)
        self.undo_service: UndoService = undo_service or UndoService(
            max_history=int(history_cfg.get("max_entries", 100))
        )
        if self.undo_service.current is not self._tree:
            self.undo_service.reset(self._tree)
        self.selection_service: SelectionService = selection_service or SelectionService(self._tree.id)

        self._record_policy: Dict[str, bool] = {op: True for op in RECORDED_OPERATIONS}
        for source in (history_cfg.get("record") or {}, record_history or {}):
            for op, enabled in source.items():
                if op not in self._record_policy:
                    logger.warning("Ignoring history policy for unknown operation '%s'", op)
                    continue
                self._record_policy[op] = bool(enabled)

        self._subscribers: List[Subscriber] = []

    # ---------------------------------------------------------------------------------
    # State access
    # ---------------------------------------------------------------------------------

    @property
    def tree(self) -> Node:
        return self._tree

    @property
    def root_id(self) -> str:
        return self._tree.id

    @property
    def selected_id(self) -> str:
        return self.selection_service.selected_id

    @property
    def selected_node(self) -> Node:
        """The selected node, or the root if the selection cannot be resolved."""
        return self.selection_service.resolve(self._tree)

    @property
    def record_policy(self) -> Dict[str, bool]:
        return dict(self._record_policy)

    def find_node(self, node_id: str) -> Optional[Node]:
        return find_by_id(self._tree, node_id)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(store)`` after every state change; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---------------------------------------------------------------------------------
    # Edit intents
    # ---------------------------------------------------------------------------------

    def add_child(self, parent_id: str, partial: Optional[Mapping[str, Any]] = None) -> OperationResult:
        return self._commit("add", self.editing_service.add_child(self._tree, parent_id, partial))

    def update_node(self, node_id: str, partial: Mapping[str, Any]) -> OperationResult:
        return self._commit("update", self.editing_service.update_node(self._tree, node_id, partial))

    def update_content(self, node_id: str, content: str) -> OperationResult:
        return self._commit("update", self.editing_service.update_content(self._tree, node_id, content))

    def apply_text_format(self, node_id: str, fmt: str, value: Optional[str] = None) -> OperationResult:
        return self._commit("update", self.editing_service.apply_text_format(self._tree, node_id, fmt, value))

    def delete_node(self, node_id: str) -> OperationResult:
        return self._commit("delete", self.editing_service.delete_node(self._tree, node_id))

    def move_node(self, dragged_id: str, target_id: str) -> OperationResult:
        return self._commit("move", self.editing_service.move_node(self._tree, dragged_id, target_id))

    def reorder_children(self, parent_id: str, new_order: Sequence[Union[str, Node]]) -> OperationResult:
        return self._commit("reorder", self.editing_service.reorder_children(self._tree, parent_id, new_order))

    def duplicate_node(self, node_id: str) -> OperationResult:
        return self._commit("duplicate", self.editing_service.duplicate_node(self._tree, node_id))

    def set_selection(self, node_id: str) -> bool:
        """Select ``node_id``. Unknown ids are refused and the selection is kept."""
        if find_by_id(self._tree, node_id) is None:
            logger.warning("Selection refused: node_not_found node=%s", node_id)
            return False
        if node_id != self.selection_service.selected_id:
            self.selection_service.select(node_id)
            self._notify()
        return True

    # ---------------------------------------------------------------------------------
    # History
    # ---------------------------------------------------------------------------------

    def can_undo(self) -> bool:
        return self._has_unrecorded_changes() or self.undo_service.can_undo()

    def can_redo(self) -> bool:
        return self.undo_service.can_redo()

    def undo(self) -> bool:
        """Restore the previous recorded snapshot. Returns False at the oldest one.

        After an edit that was not recorded, the first undo only returns to the
        last recorded snapshot; the history cursor does not move.
        """
        if self._has_unrecorded_changes():
            return self._restore(self.undo_service.current, "undo unrecorded")
        return self._restore(self.undo_service.undo(), "undo")

    def redo(self) -> bool:
        """Restore the next recorded snapshot. Returns False at the newest one."""
        return self._restore(self.undo_service.redo(), "redo")

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _has_unrecorded_changes(self) -> bool:
        current = self.undo_service.current
        return current is not None and current is not self._tree

    def _commit(self, operation: str, result: OperationResult) -> OperationResult:
        """Swap in the tree of a successful result, then record history and fix selection."""
        if not result.success or result.tree is None or result.tree is self._tree:
            return result

        self._tree = result.tree
        if self._record_policy.get(operation, True):
            self.undo_service.push_snapshot(self._tree)
        else:
            logger.debug("History recording disabled for %s", operation)

        details = result.details or {}
        if operation in ("add", "duplicate") and details.get("node_id"):
            self.selection_service.select(details["node_id"])
        if details.get("removed_ids"):
            self.selection_service.on_nodes_removed(details["removed_ids"])

        self._notify()
        return result

    def _restore(self, snapshot: Optional[Node], label: str) -> bool:
        if snapshot is None:
            logger.info("History noop: %s at boundary", label)
            return False
        self._tree = snapshot
        self.selection_service.reconcile(snapshot)
        logger.info("History OK: %s index=%d", label, self.undo_service.index)
        self._notify()
        return True

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                # A broken view must not abort an edit that is already committed
                logger.exception("Tree subscriber %r failed", callback)

    @staticmethod
    def _root_from_config(editor_cfg: Mapping[str, Any]) -> Node:
        root_cfg = editor_cfg.get("root") or {}
        return create_root(
            root_id=str(root_cfg.get("id", DEFAULT_ROOT_ID)),
            node_type=str(root_cfg.get("type", "div")),
            name=str(root_cfg.get("name", "Container")),
            class_list=root_cfg.get("class_list") or (),
        )
