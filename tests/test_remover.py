"""
测试节点删除
"""
import pytest

from nested_tree.core.interval import IntervalAllocator, NodeRemover, RemoveMode, ChildPlacement
from nested_tree.core.node import Node
from forest_helpers import intervals, assert_valid_forest


@pytest.fixture
def forest(store):
    """
    R (1,12)
    ├── A (2,7)
    │   ├── A1 (3,4)
    │   └── A2 (5,6)
    └── B (8,11)
        └── B1 (9,10)
    S (13,14)
    """
    allocator = IntervalAllocator(store, ChildPlacement.LAST)
    nodes = {}

    def add(label, parent=None):
        parent_id = nodes[parent].id if parent else None
        lft, rght = allocator.allocate(parent_id)
        nodes[label] = store.insert(parent_id, lft, rght, label)

    add("R")
    add("A", "R")
    add("A1", "A")
    add("A2", "A")
    add("B", "R")
    add("B1", "B")
    add("S")
    return nodes


def current(store, nodes, label):
    return store.find_by_id(nodes[label].id)


class TestNodeRemover:
    """测试级联删除与提升子节点删除"""

    def test_fixture_layout(self, store, forest):
        assert intervals(store) == {
            "R": (1, 12), "A": (2, 7), "A1": (3, 4), "A2": (5, 6),
            "B": (8, 11), "B1": (9, 10), "S": (13, 14),
        }

    def test_cascade_removes_subtree(self, store, forest):
        node = current(store, forest, "A")
        k = node.descendant_count

        removed = NodeRemover(store).remove(node, RemoveMode.CASCADE)

        assert removed == k + 1 == 3
        assert intervals(store) == {"R": (1, 6), "B": (2, 5), "B1": (3, 4), "S": (7, 8)}
        assert_valid_forest(store)

    def test_cascade_leaf(self, store, forest):
        removed = NodeRemover(store).remove_with_children(current(store, forest, "B1"))

        assert removed == 1
        assert intervals(store)["B"] == (8, 9)
        assert intervals(store)["S"] == (11, 12)
        assert_valid_forest(store)

    def test_cascade_root(self, store, forest):
        removed = NodeRemover(store).remove(current(store, forest, "R"))

        assert removed == 6
        assert intervals(store) == {"S": (1, 2)}

    def test_promote_reparents_children(self, store, forest):
        node = current(store, forest, "A")

        removed = NodeRemover(store).remove(node, RemoveMode.PROMOTE)

        assert removed == 1
        assert store.find_by_id(node.id) is None
        for label in ("A1", "A2"):
            assert current(store, forest, label).parent_id == forest["R"].id
        assert intervals(store) == {
            "R": (1, 10), "A1": (2, 3), "A2": (4, 5),
            "B": (6, 9), "B1": (7, 8), "S": (11, 12),
        }
        assert_valid_forest(store)

    def test_promote_root_children_become_roots(self, store, forest):
        NodeRemover(store).remove_promoting_children(current(store, forest, "R"))

        assert current(store, forest, "A").parent_id is None
        assert current(store, forest, "B").parent_id is None
        assert intervals(store)["A"] == (1, 6)
        assert intervals(store)["S"] == (11, 12)
        assert_valid_forest(store)

    def test_promote_leaf(self, store, forest):
        NodeRemover(store).remove(current(store, forest, "A2"), RemoveMode.PROMOTE)

        assert intervals(store)["A"] == (2, 5)
        assert_valid_forest(store)

    def test_empty_store_is_noop(self, store):
        ghost = Node(id=1, parent_id=None, lft=1, rght=2)
        assert NodeRemover(store).remove(ghost) == 0
        assert NodeRemover(store).remove(ghost, RemoveMode.PROMOTE) == 0

    def test_stale_node_is_noop(self, store, forest):
        node = current(store, forest, "A")
        remover = NodeRemover(store)
        remover.remove(node)
        after_first = intervals(store)

        # 同一个（已删除的）节点再删一次
        assert remover.remove(node, RemoveMode.PROMOTE) == 0
        assert intervals(store) == after_first
