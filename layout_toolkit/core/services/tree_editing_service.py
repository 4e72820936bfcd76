from __future__ import annotations

"""Service layer for structural edits on the document tree.

This module provides a UI-agnostic, testable service that encapsulates every
structural edit of the builder: adding, updating, deleting, moving,
reordering and duplicating nodes.

Scope and guarantees:
- Operates purely in-memory on immutable :class:`Node` trees; no I/O, no UI.
- Every operation is pure: it receives a tree and returns an
  :class:`OperationResult` holding the resulting tree. The input tree is never
  modified. When nothing changes, ``result.tree`` is the input object itself.
- Only nodes on the path from the root to an edited node are rebuilt; all
  other subtrees are shared with the input tree.
- Invalid edits return ``OperationResult(success=False, ...)`` with an
  :class:`EditError` kind where one applies; nothing is raised.

Examples
--------
Basic usage:

    service = TreeEditingService()
    result = service.move_node(tree, "component-abc123xyz", "1")
    if not result.success:
        print(result.error, result.message)

"""

from dataclasses import dataclass, replace
from enum import Enum
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from layout_toolkit.config import ConfigManager
from layout_toolkit.core.locator import collect_ids, find_by_id, find_path, is_descendant_or_self
from layout_toolkit.core.models import Node, as_class_tokens
from layout_toolkit.core.nesting import NestingValidator


__all__ = ["EditError", "OperationResult", "TreeEditingService", "validate_tree"]

logger = logging.getLogger(__name__)

_ADD_FIELDS = frozenset({"id", "type", "name", "class_list", "style_map", "children", "content", "is_text_component"})
_UPDATE_FIELDS = frozenset({"type", "name", "class_list", "style_map", "content"})

_DEFAULT_TEXT_TYPES = ("p", "h1", "h2", "h3", "button", "a")
_DEFAULT_NODE_TYPE = "div"
_DEFAULT_NODE_NAME = "New Component"
_DEFAULT_ID_PREFIX = "component-"
_ID_LENGTH = 9
_MAX_ID_ATTEMPTS = 1000

# format -> (style key, "on" value, "off" value)
_TEXT_FORMAT_TOGGLES = {
    "bold": ("fontWeight", "bold", "normal"),
    "italic": ("fontStyle", "italic", "normal"),
    "underline": ("textDecoration", "underline", "none"),
}

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class EditError(Enum):
    """Reasons an edit was rejected."""

    NOT_FOUND = "not_found"
    INVALID_MOVE = "invalid_move"
    INVALID_NESTING = "invalid_nesting"


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation produced a new, valid tree.
    message
        Human-readable summary suitable for logs or UI display.
    tree
        The resulting tree. Identical (``is``) to the input tree when the
        operation was rejected or changed nothing.
    error
        Rejection kind, or None for successes and silent no-ops.
    details
        Optional structured details for diagnostics or caller logic
        (``node_id``, ``removed_ids``...).
    """
    success: bool
    message: str
    tree: Optional[Node] = None
    error: Optional[EditError] = None
    details: Optional[Dict[str, Any]] = None


def _random_token(length: int = _ID_LENGTH) -> str:
    value = uuid.uuid4().int
    chars = []
    for _ in range(length):
        value, rem = divmod(value, 36)
        chars.append(_BASE36[rem])
    return "".join(chars)


def _rebuild_path(path: Sequence[Node], replacement: Optional[Node]) -> Optional[Node]:
    """Replace ``path[-1]`` by ``replacement`` and copy every ancestor on the path.

    A ``replacement`` of None removes the last node from its parent. Returns
    the new root.
    """
    new_node = replacement
    for depth in range(len(path) - 1, 0, -1):
        old_node = path[depth]
        parent = path[depth - 1]
        children: List[Node] = []
        for child in parent.children:
            if child is old_node:
                if new_node is not None:
                    children.append(new_node)
            else:
                children.append(child)
        new_node = parent.with_children(children)
    return new_node


def _index_of(children: Sequence[Node], node: Node) -> int:
    for idx, child in enumerate(children):
        if child is node:
            return idx
    raise ValueError(f"node {node.id!r} is not a child")


def validate_tree(tree: Node) -> List[str]:
    """Return a list of invariant violations found in ``tree`` (empty if valid).

    Checks id uniqueness, that text components own no children and that no
    node object appears twice (which would mean a shared or cyclic subtree).
    """
    problems: List[str] = []
    seen_ids: Set[str] = set()
    seen_objects: Set[int] = set()
    stack = [tree]
    while stack:
        node = stack.pop()
        if id(node) in seen_objects:
            problems.append(f"node {node.id!r} is reachable twice")
            continue
        seen_objects.add(id(node))
        if node.id in seen_ids:
            problems.append(f"duplicate id {node.id!r}")
        seen_ids.add(node.id)
        if node.is_text_component and node.children:
            problems.append(f"text component {node.id!r} has children")
        stack.extend(node.children)
    return problems


class TreeEditingService:
    """Encapsulates structural edit operations on a document tree.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Ids of new nodes are always generated here, never taken from callers.

    Parameters
    ----------
    nesting_validator
        Placement rules used by :meth:`move_node`. Defaults to the packaged
        rules.
    text_component_types
        Types created with ``is_text_component=True``.
    node_defaults
        Mapping with default ``type`` and ``name`` for new nodes.
    id_prefix
        Prefix of generated ids.
    id_factory
        Optional callable returning candidate ids; candidates already used in
        the tree are discarded.
    config_manager
        Source of any setting not passed explicitly.
    """

    def __init__(
        self,
        nesting_validator: Optional[NestingValidator] = None,
        text_component_types: Optional[Iterable[str]] = None,
        node_defaults: Optional[Mapping[str, Any]] = None,
        id_prefix: Optional[str] = None,
        id_factory: Optional[Callable[[], str]] = None,
        config_manager: Optional[ConfigManager] = None,
    ) -> None:
        needs_config = nesting_validator is None or text_component_types is None or node_defaults is None or id_prefix is None
        editor_cfg: Mapping[str, Any] = {}
        if needs_config:
            config_manager = config_manager or ConfigManager()
            editor_cfg = config_manager.get_editor_config()

        self._nesting = nesting_validator or NestingValidator.from_config(config_manager)
        if text_component_types is None:
            text_component_types = editor_cfg.get("text_component_types", _DEFAULT_TEXT_TYPES)
        self._text_types = frozenset(text_component_types)
        defaults = dict(node_defaults if node_defaults is not None else editor_cfg.get("node_defaults") or {})
        self._default_type = str(defaults.get("type", _DEFAULT_NODE_TYPE))
        self._default_name = str(defaults.get("name", _DEFAULT_NODE_NAME))
        self._id_prefix = id_prefix if id_prefix is not None else str(editor_cfg.get("id_prefix", _DEFAULT_ID_PREFIX))
        self._id_factory = id_factory or (lambda: f"{self._id_prefix}{_random_token()}")
        self._logger = logging.getLogger(f"{__name__}.TreeEditingService")

    @property
    def nesting_validator(self) -> NestingValidator:
        return self._nesting

    def is_text_type(self, node_type: str) -> bool:
        return node_type in self._text_types

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add_child(self, tree: Node, parent_id: str, partial: Optional[Mapping[str, Any]] = None) -> OperationResult:
        """Create a node from ``partial`` and place it under ``parent_id``.

        The node gets a fresh id, defaults for missing fields and an
        ``is_text_component`` flag derived from its type unless ``partial``
        sets it. When the parent is a text component the node is inserted as
        the parent's next sibling instead of as its child.
        """
        fields = dict(partial or {})
        logger.info("Edit: add_child parent=%s type=%s", parent_id, fields.get("type", self._default_type))

        unknown = set(fields) - _ADD_FIELDS
        if unknown:
            logger.warning("Edit FAIL: add_child unknown_fields=%s", sorted(unknown))
            return OperationResult(False, f"Unknown node field(s): {', '.join(sorted(unknown))}.", tree,
                                   details={"fields": sorted(unknown)})
        if "id" in fields:
            logger.debug("add_child ignores caller-supplied id %r", fields["id"])
        if any(not isinstance(c, Node) for c in fields.get("children") or ()):
            return OperationResult(False, "Children must be Node instances.", tree, details={"parent_id": parent_id})

        path = find_path(tree, parent_id)
        if path is None:
            logger.warning("Edit noop: add_child parent_not_found parent=%s", parent_id)
            return OperationResult(False, f"Parent not found for id '{parent_id}'.", tree,
                                   EditError.NOT_FOUND, {"parent_id": parent_id})

        parent = path[-1]
        if parent.is_text_component and len(path) < 2:
            return OperationResult(False, "Cannot add next to a root text component.", tree, details={"parent_id": parent_id})

        node = self._build_node(fields, collect_ids(tree))

        if parent.is_text_component:
            # Text components never gain children: insert right after the parent instead
            container = path[-2]
            idx = _index_of(container.children, parent)
            children = container.children[: idx + 1] + (node,) + container.children[idx + 1:]
            new_tree = _rebuild_path(path[:-1], container.with_children(children))
            placement, effective_parent = "sibling", container.id
        else:
            new_tree = _rebuild_path(path, parent.with_children(parent.children + (node,)))
            placement, effective_parent = "child", parent.id

        logger.info("Edit OK: add_child node=%s parent=%s placement=%s", node.id, effective_parent, placement)
        return OperationResult(True, "Added node.", new_tree, details={
            "node_id": node.id,
            "parent_id": effective_parent,
            "placement": placement,
        })

    def update_node(self, tree: Node, node_id: str, partial: Mapping[str, Any]) -> OperationResult:
        """Merge ``partial`` into the node with ``node_id``.

        ``type``, ``name``, ``class_list`` and ``content`` are replaced;
        ``style_map`` is merged key by key, a None value removing the key.
        """
        fields = dict(partial or {})
        logger.info("Edit: update_node node=%s fields=%s", node_id, sorted(fields))

        unknown = set(fields) - _UPDATE_FIELDS
        if unknown:
            logger.warning("Edit FAIL: update_node node=%s unknown_fields=%s", node_id, sorted(unknown))
            return OperationResult(False, f"Field(s) cannot be updated: {', '.join(sorted(unknown))}.", tree,
                                   details={"node_id": node_id, "fields": sorted(unknown)})

        path = find_path(tree, node_id)
        if path is None:
            logger.warning("Edit noop: update_node node_not_found node=%s", node_id)
            return OperationResult(False, f"Node not found for id '{node_id}'.", tree,
                                   EditError.NOT_FOUND, {"node_id": node_id})

        node = path[-1]
        changes: Dict[str, Any] = {}
        for key in ("type", "name"):
            if key in fields:
                changes[key] = str(fields[key])
        if "content" in fields:
            changes["content"] = "" if fields["content"] is None else str(fields["content"])
        if "class_list" in fields:
            changes["class_list"] = as_class_tokens(fields["class_list"])
        if "style_map" in fields:
            merged = dict(node.style_map)
            for key, value in (fields["style_map"] or {}).items():
                if value is None:
                    merged.pop(key, None)
                else:
                    merged[key] = value
            changes["style_map"] = merged

        if all(getattr(node, key) == value for key, value in changes.items()):
            logger.info("Edit noop: update_node node=%s unchanged", node_id)
            return OperationResult(True, "Node already up to date.", tree, details={"node_id": node_id, "changed": False})

        new_tree = _rebuild_path(path, replace(node, **changes))
        logger.info("Edit OK: update_node node=%s", node_id)
        return OperationResult(True, "Updated node.", new_tree, details={"node_id": node_id, "changed": True})

    def update_content(self, tree: Node, node_id: str, content: str) -> OperationResult:
        """Replace the text/URL payload of ``node_id``."""
        return self.update_node(tree, node_id, {"content": content})

    def apply_text_format(self, tree: Node, node_id: str, fmt: str, value: Optional[str] = None) -> OperationResult:
        """Toggle bold/italic/underline or set the alignment of ``node_id``."""
        node = find_by_id(tree, node_id)
        if node is None:
            logger.warning("Edit noop: apply_text_format node_not_found node=%s", node_id)
            return OperationResult(False, f"Node not found for id '{node_id}'.", tree,
                                   EditError.NOT_FOUND, {"node_id": node_id})

        if fmt in _TEXT_FORMAT_TOGGLES:
            key, on_value, off_value = _TEXT_FORMAT_TOGGLES[fmt]
            new_value = off_value if node.style_map.get(key) == on_value else on_value
        elif fmt == "align":
            if not value:
                return OperationResult(False, "Alignment requires a value.", tree, details={"node_id": node_id})
            key, new_value = "textAlign", value
        else:
            return OperationResult(False, f"Unsupported text format '{fmt}'.", tree,
                                   details={"allowed": sorted(_TEXT_FORMAT_TOGGLES) + ["align"]})

        return self.update_node(tree, node_id, {"style_map": {key: new_value}})

    def delete_node(self, tree: Node, node_id: str) -> OperationResult:
        """Remove ``node_id`` and its whole subtree. The root is never removed."""
        logger.info("Edit: delete_node node=%s", node_id)
        if node_id == tree.id:
            logger.info("Edit noop: delete_node root is protected")
            return OperationResult(False, "The root node cannot be deleted.", tree, details={"node_id": node_id})

        path = find_path(tree, node_id)
        if path is None:
            logger.warning("Edit noop: delete_node node_not_found node=%s", node_id)
            return OperationResult(False, f"Node not found for id '{node_id}'.", tree,
                                   EditError.NOT_FOUND, {"node_id": node_id})

        removed_ids = [n.id for n in path[-1].walk()]
        new_tree = _rebuild_path(path, None)
        logger.info("Edit OK: delete_node node=%s removed=%d", node_id, len(removed_ids))
        return OperationResult(True, "Deleted node.", new_tree, details={
            "node_id": node_id,
            "parent_id": path[-2].id,
            "removed_ids": removed_ids,
        })

    def move_node(self, tree: Node, dragged_id: str, target_id: str) -> OperationResult:
        """Reparent ``dragged_id`` as the last child of ``target_id``.

        Rejections:
        - same id: silent no-op (no error kind);
        - unknown id: ``NOT_FOUND``;
        - target inside the dragged subtree: ``INVALID_MOVE``;
        - nesting rule or text-component target: ``INVALID_NESTING``.
        """
        logger.info("Edit: move_node dragged=%s target=%s", dragged_id, target_id)
        if dragged_id == target_id:
            return OperationResult(False, "A node cannot be moved onto itself.", tree,
                                   details={"dragged_id": dragged_id, "target_id": target_id})

        dragged_path = find_path(tree, dragged_id)
        target = find_by_id(tree, target_id)
        if dragged_path is None or target is None:
            missing = dragged_id if dragged_path is None else target_id
            logger.warning("Edit FAIL: move_node node_not_found node=%s", missing)
            return OperationResult(False, f"Node not found for id '{missing}'.", tree,
                                   EditError.NOT_FOUND, {"dragged_id": dragged_id, "target_id": target_id})

        dragged = dragged_path[-1]
        if is_descendant_or_self(dragged, target_id):
            logger.warning("Edit FAIL: move_node invalid_move dragged=%s target=%s", dragged_id, target_id)
            return OperationResult(False, "Cannot move a parent into its own child.", tree,
                                   EditError.INVALID_MOVE, {"dragged_id": dragged_id, "target_id": target_id})

        if not self._nesting.is_valid_nesting(dragged.type, target.type):
            logger.warning("Edit FAIL: move_node invalid_nesting child=%s parent=%s", dragged.type, target.type)
            return OperationResult(False, f"Cannot place {dragged.type} inside {target.type}.", tree,
                                   EditError.INVALID_NESTING,
                                   {"dragged_id": dragged_id, "target_id": target_id,
                                    "child_type": dragged.type, "parent_type": target.type})

        if target.is_text_component:
            logger.warning("Edit FAIL: move_node text_target target=%s", target_id)
            return OperationResult(False, f"{target.type} is a text component and cannot contain other nodes.", tree,
                                   EditError.INVALID_NESTING,
                                   {"dragged_id": dragged_id, "target_id": target_id,
                                    "child_type": dragged.type, "parent_type": target.type})

        detached = _rebuild_path(dragged_path, None)
        target_path = find_path(detached, target_id)
        new_target = target_path[-1].with_children(target_path[-1].children + (dragged,))
        new_tree = _rebuild_path(target_path, new_target)
        logger.info("Edit OK: move_node dragged=%s target=%s", dragged_id, target_id)
        return OperationResult(True, "Moved node.", new_tree, details={
            "dragged_id": dragged_id,
            "target_id": target_id,
            "old_parent_id": dragged_path[-2].id,
        })

    def reorder_children(
        self,
        tree: Node,
        parent_id: str,
        new_order: Sequence[Union[str, Node]],
    ) -> OperationResult:
        """Replace the direct child order of ``parent_id``.

        Entries are ids or nodes. Existing children are reused by id with
        their whole subtree; a node entry matching no child is inserted as
        given; an unknown id string is skipped. Children missing from
        ``new_order`` are dropped. Deeper levels are left untouched.
        """
        logger.info("Edit: reorder_children parent=%s count=%d", parent_id, len(new_order or ()))
        path = find_path(tree, parent_id)
        if path is None:
            logger.warning("Edit noop: reorder_children parent_not_found parent=%s", parent_id)
            return OperationResult(False, f"Parent not found for id '{parent_id}'.", tree,
                                   EditError.NOT_FOUND, {"parent_id": parent_id})

        parent = path[-1]
        existing = {child.id: child for child in parent.children}
        ordered: List[Node] = []
        seen: Set[str] = set()
        inserted: List[str] = []
        skipped: List[str] = []
        for entry in new_order or ():
            entry_id = entry.id if isinstance(entry, Node) else str(entry)
            if entry_id in seen:
                return OperationResult(False, f"Id '{entry_id}' appears twice in the new order.", tree,
                                       details={"parent_id": parent_id, "duplicate": entry_id})
            seen.add(entry_id)
            child = existing.get(entry_id)
            if child is not None:
                ordered.append(child)
            elif isinstance(entry, Node):
                ordered.append(entry)
                inserted.append(entry_id)
            else:
                logger.warning("reorder_children skips unknown child id=%s parent=%s", entry_id, parent_id)
                skipped.append(entry_id)

        if len(ordered) == len(parent.children) and all(a is b for a, b in zip(ordered, parent.children)):
            logger.info("Edit noop: reorder_children parent=%s unchanged", parent_id)
            return OperationResult(True, "Order unchanged.", tree, details={"parent_id": parent_id, "changed": False})

        if ordered and parent.is_text_component:
            return OperationResult(False, "Text components cannot contain other nodes.", tree,
                                   EditError.INVALID_NESTING, {"parent_id": parent_id})

        dropped = [child for child in parent.children if child.id not in seen]
        new_tree = _rebuild_path(path, parent.with_children(ordered))
        if inserted:
            problems = validate_tree(new_tree)
            if problems:
                logger.warning("Edit FAIL: reorder_children parent=%s problems=%s", parent_id, problems)
                return OperationResult(False, "Inserted nodes conflict with the tree.", tree,
                                       details={"parent_id": parent_id, "problems": problems})

        logger.info("Edit OK: reorder_children parent=%s inserted=%d dropped=%d", parent_id, len(inserted), len(dropped))
        return OperationResult(True, "Reordered children.", new_tree, details={
            "parent_id": parent_id,
            "order": [child.id for child in ordered],
            "inserted": inserted,
            "skipped": skipped,
            "removed_ids": [n.id for child in dropped for n in child.walk()],
        })

    def duplicate_node(self, tree: Node, node_id: str) -> OperationResult:
        """Clone the subtree of ``node_id`` with fresh ids and append it to the same parent.

        The clone goes to the end of the parent's children, not next to the
        original.
        """
        logger.info("Edit: duplicate_node node=%s", node_id)
        if node_id == tree.id:
            logger.info("Edit noop: duplicate_node root cannot be duplicated")
            return OperationResult(False, "The root node cannot be duplicated.", tree, details={"node_id": node_id})

        path = find_path(tree, node_id)
        if path is None:
            logger.warning("Edit noop: duplicate_node node_not_found node=%s", node_id)
            return OperationResult(False, f"Node not found for id '{node_id}'.", tree,
                                   EditError.NOT_FOUND, {"node_id": node_id})

        parent = path[-2]
        clone = self._clone_with_fresh_ids(path[-1], collect_ids(tree))
        new_tree = _rebuild_path(path[:-1], parent.with_children(parent.children + (clone,)))
        logger.info("Edit OK: duplicate_node node=%s clone=%s", node_id, clone.id)
        return OperationResult(True, "Duplicated node.", new_tree, details={
            "node_id": clone.id,
            "source_id": node_id,
            "parent_id": parent.id,
        })

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _new_id(self, taken: Set[str]) -> str:
        """Return an id not in ``taken`` and reserve it."""
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken:
                taken.add(candidate)
                return candidate
        raise RuntimeError(f"Could not generate a unique node id after {_MAX_ID_ATTEMPTS} attempts")

    def _build_node(self, fields: Mapping[str, Any], taken: Set[str]) -> Node:
        node_type = str(fields.get("type") or self._default_type)
        if fields.get("is_text_component") is not None:
            is_text = bool(fields["is_text_component"])
        else:
            is_text = node_type in self._text_types
        new_id = self._new_id(taken)
        children = () if is_text else tuple(self._clone_with_fresh_ids(c, taken) for c in fields.get("children") or ())
        return Node(
            id=new_id,
            type=node_type,
            name=str(fields.get("name") or self._default_name),
            class_list=as_class_tokens(fields.get("class_list")),
            style_map={k: v for k, v in (fields.get("style_map") or {}).items() if v is not None},
            children=children,
            content="" if fields.get("content") is None else str(fields["content"]),
            is_text_component=is_text,
        )

    def _clone_with_fresh_ids(self, node: Node, taken: Set[str]) -> Node:
        new_id = self._new_id(taken)
        children = tuple(self._clone_with_fresh_ids(child, taken) for child in node.children)
        return replace(node, id=new_id, children=children)
