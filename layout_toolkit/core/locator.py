from __future__ import annotations

"""Read-only traversal helpers over a document tree.

All functions walk the tree depth-first with parents visited before their
children. None of them keeps state; the parent index built by
:func:`build_parent_index` is a derived view that callers rebuild whenever
they hold a new snapshot.
"""

from typing import Dict, Iterator, List, Optional, Set

from layout_toolkit.core.models import Node

__all__ = [
    "find_by_id",
    "find_parent_of",
    "find_path",
    "is_descendant_or_self",
    "iter_nodes",
    "collect_ids",
    "build_parent_index",
]


def iter_nodes(tree: Node) -> Iterator[Node]:
    """Yield every node of ``tree`` in depth-first pre-order."""
    return tree.walk()


def find_by_id(tree: Node, node_id: str) -> Optional[Node]:
    """Return the node with ``node_id`` or None."""
    for node in tree.walk():
        if node.id == node_id:
            return node
    return None


def find_path(tree: Node, node_id: str) -> Optional[List[Node]]:
    """Return the nodes from the root down to ``node_id`` inclusive.

    Returns None when the id does not occur in the tree.
    """
    # Iterative DFS keeping the current path; child iterators resume in place
    path: List[Node] = [tree]
    iterators = [iter(tree.children)]
    if tree.id == node_id:
        return path
    while iterators:
        child = next(iterators[-1], None)
        if child is None:
            iterators.pop()
            path.pop()
            continue
        path.append(child)
        if child.id == node_id:
            return path
        iterators.append(iter(child.children))
    return None


def find_parent_of(tree: Node, node_id: str) -> Optional[Node]:
    """Return the direct parent of ``node_id``; None for the root or an unknown id."""
    path = find_path(tree, node_id)
    if path is None or len(path) < 2:
        return None
    return path[-2]


def is_descendant_or_self(candidate_ancestor: Node, node_id: str) -> bool:
    """True if ``node_id`` is ``candidate_ancestor`` itself or lies in its subtree."""
    return find_by_id(candidate_ancestor, node_id) is not None


def collect_ids(tree: Node) -> Set[str]:
    """Return the set of all ids in ``tree``."""
    return {node.id for node in tree.walk()}


def build_parent_index(tree: Node) -> Dict[str, Optional[str]]:
    """Map every node id to its parent id (None for the root)."""
    index: Dict[str, Optional[str]] = {tree.id: None}
    for node in tree.walk():
        for child in node.children:
            index[child.id] = node.id
    return index
