from __future__ import annotations

"""Shared data structures used across the Layout Toolkit core.

Nodes are immutable values: every edit produces new ``Node`` instances along
the path from the root to the edited node, while untouched subtrees are shared
between consecutive snapshots. A snapshot of the document is therefore just
its root ``Node``. No UI / I/O code lives here.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

__all__ = ["Node", "StyleValue", "DEFAULT_ROOT_ID", "as_class_tokens", "create_root"]

StyleValue = Union[str, int, float]

DEFAULT_ROOT_ID = "1"


def as_class_tokens(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """Normalise a class list; a single string is one token, not a sequence of characters."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(token) for token in value)


@dataclass(frozen=True)
class Node:
    """A single element of the document tree.

    Attributes
    ----------
    id
        Opaque identifier, unique across the whole tree.
    type
        Open tag naming the node category (``div``, ``p``, ``img``...). Used
        for rendering hints and nesting-rule lookups.
    name
        User-facing label, independent of ``type``.
    class_list
        Ordered presentation tokens.
    style_map
        Read-only mapping of style property -> value.
    children
        Ordered child nodes, exclusively owned by this node.
    content
        Optional text or URL payload used by leaf-like types.
    is_text_component
        True for types that never own children (paragraphs, headings...).
    """

    id: str
    type: str
    name: str = ""
    class_list: Tuple[str, ...] = ()
    # Excluded from hash(), still compared by ==
    style_map: Mapping[str, StyleValue] = field(default_factory=dict, hash=False)
    children: Tuple["Node", ...] = ()
    content: str = ""
    is_text_component: bool = False

    def __post_init__(self) -> None:
        # Normalise containers so callers may pass lists/dicts
        object.__setattr__(self, "class_list", as_class_tokens(self.class_list))
        object.__setattr__(self, "children", tuple(self.children))
        if not isinstance(self.style_map, MappingProxyType):
            object.__setattr__(self, "style_map", MappingProxyType(dict(self.style_map)))

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants, parent before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def with_children(self, children: Iterable["Node"]) -> "Node":
        """Return a copy of this node with ``children`` replaced."""
        return replace(self, children=tuple(children))


def create_root(
    root_id: str = DEFAULT_ROOT_ID,
    node_type: str = "div",
    name: str = "Container",
    class_list: Optional[Iterable[str]] = None,
) -> Node:
    """Build an empty document consisting of the root node only."""
    return Node(
        id=root_id,
        type=node_type,
        name=name,
        class_list=as_class_tokens(class_list),
    )
