from __future__ import annotations

"""Placement rules: which node types may be direct children of which parents.

The table maps a parent type to the allow-list of its child types. A parent
type without an entry accepts any child. The table is frozen at construction
time; the default one comes from the packaged ``nesting_rules.yml``.
"""

import logging
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from layout_toolkit.config import ConfigManager

__all__ = ["NestingValidator"]

logger = logging.getLogger(__name__)


class NestingValidator:
    """Read-only lookup of nesting rules.

    Parameters
    ----------
    rules
        Mapping of parent type -> iterable of allowed child types.

    Examples
    --------
    >>> validator = NestingValidator({"ul": ["li"]})
    >>> validator.is_valid_nesting("li", "ul")
    True
    >>> validator.is_valid_nesting("p", "ul")
    False
    >>> validator.is_valid_nesting("p", "section")  # no entry, no restriction
    True
    """

    def __init__(self, rules: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        frozen = {str(parent): frozenset(str(c) for c in children) for parent, children in (rules or {}).items()}
        self._rules: Mapping[str, FrozenSet[str]] = MappingProxyType(frozen)

    @classmethod
    def from_config(cls, config_manager: Optional[ConfigManager] = None) -> "NestingValidator":
        """Build a validator from the ``nesting_rules`` configuration section."""
        raw: Mapping[str, Any] = (config_manager or ConfigManager()).get_nesting_rules()
        rules = {}
        for parent, children in raw.items():
            if not isinstance(children, (list, tuple)):
                logger.warning("Ignoring nesting rule for '%s': expected a list, got %r", parent, children)
                continue
            rules[parent] = children
        logger.debug("Loaded %d nesting rules", len(rules))
        return cls(rules)

    @property
    def rules(self) -> Mapping[str, FrozenSet[str]]:
        return self._rules

    def allowed_children(self, parent_type: str) -> Optional[FrozenSet[str]]:
        """Return the allow-list for ``parent_type``, or None when unrestricted."""
        return self._rules.get(parent_type)

    def is_valid_nesting(self, child_type: str, parent_type: str) -> bool:
        """Return True if ``child_type`` may be a direct child of ``parent_type``."""
        allowed = self._rules.get(parent_type)
        if allowed is None:
            return True
        return child_type in allowed
