from layout_toolkit.core.locator import (
    build_parent_index,
    collect_ids,
    find_by_id,
    find_parent_of,
    find_path,
    is_descendant_or_self,
    iter_nodes,
)


def test_find_by_id_returns_node_or_none(sample_tree):
    assert find_by_id(sample_tree, "5").type == "li"
    assert find_by_id(sample_tree, "1") is sample_tree
    assert find_by_id(sample_tree, "missing") is None


def test_find_parent_of(sample_tree):
    assert find_parent_of(sample_tree, "5").id == "4"
    assert find_parent_of(sample_tree, "6").id == "1"
    assert find_parent_of(sample_tree, "1") is None
    assert find_parent_of(sample_tree, "missing") is None


def test_find_path_lists_root_to_target(sample_tree):
    assert [n.id for n in find_path(sample_tree, "5")] == ["1", "2", "4", "5"]
    assert [n.id for n in find_path(sample_tree, "6")] == ["1", "6"]
    assert [n.id for n in find_path(sample_tree, "1")] == ["1"]
    assert find_path(sample_tree, "missing") is None


def test_find_path_after_exhausting_earlier_branches(sample_tree):
    # "6" is visited after the whole subtree of "2" has been explored
    path = find_path(sample_tree, "6")
    assert path[0] is sample_tree
    assert path[-1] is sample_tree.children[1]


def test_is_descendant_or_self_is_reflexive(sample_tree):
    node_2 = find_by_id(sample_tree, "2")
    assert is_descendant_or_self(node_2, "2") is True
    assert is_descendant_or_self(node_2, "5") is True
    assert is_descendant_or_self(node_2, "6") is False
    assert is_descendant_or_self(node_2, "1") is False


def test_iter_and_collect_ids(sample_tree):
    assert [n.id for n in iter_nodes(sample_tree)] == ["1", "2", "3", "4", "5", "6"]
    assert collect_ids(sample_tree) == {"1", "2", "3", "4", "5", "6"}


def test_build_parent_index(sample_tree):
    assert build_parent_index(sample_tree) == {
        "1": None,
        "2": "1",
        "3": "2",
        "4": "2",
        "5": "4",
        "6": "1",
    }
