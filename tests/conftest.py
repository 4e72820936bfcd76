"""Test configuration and shared fixtures for the Layout Toolkit edit engine.

Every test runs with a fresh ConfigManager pointed at an empty user config
directory so personal overrides never leak into the suite.
"""

import itertools
import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from layout_toolkit.config import ConfigManager
from layout_toolkit.core.models import Node
from layout_toolkit.core.nesting import NestingValidator
from layout_toolkit.core.services import TreeEditingService

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty directory and reload configuration."""
    user_dir = tmp_path / "user_config"
    user_dir.mkdir()
    monkeypatch.setenv("LAYOUT_TOOLKIT_CONFIG_DIR", str(user_dir))
    ConfigManager.reset()
    yield user_dir
    ConfigManager.reset()


@pytest.fixture
def id_factory():
    """Deterministic id generator: n1, n2, n3..."""
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def editing_service(id_factory):
    return TreeEditingService(id_factory=id_factory)


@pytest.fixture
def validator():
    return NestingValidator.from_config()


def text(node_id, node_type="p", **kwargs):
    return Node(id=node_id, type=node_type, is_text_component=True, **kwargs)


def box(node_id, *children, node_type="div", **kwargs):
    return Node(id=node_id, type=node_type, children=children, **kwargs)


@pytest.fixture
def make_text():
    return text


@pytest.fixture
def make_box():
    return box


@pytest.fixture
def sample_tree():
    """
    1 (div)
    ├── 2 (div)
    │   ├── 3 (p, text)
    │   └── 4 (ul)
    │       └── 5 (li)
    └── 6 (h1, text)
    """
    return box(
        "1",
        box("2", text("3"), box("4", box("5", node_type="li"), node_type="ul")),
        text("6", node_type="h1"),
        name="Container",
    )


def ids_in_order(tree):
    return [n.id for n in tree.walk()]


def child_ids(node):
    return [c.id for c in node.children]


@pytest.fixture
def order_of():
    return ids_in_order


@pytest.fixture
def children_of():
    return child_ids
