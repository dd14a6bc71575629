"""
测试区间分配器
"""
import pytest

from nested_tree.core.interval import IntervalAllocator, ChildPlacement
from nested_tree.exceptions import ReferentialIntegrityError
from forest_helpers import intervals, assert_valid_forest


def add(store, allocator, label, parent_id=None):
    """分配区间并插入（与系统写操作相同的顺序）"""
    lft, rght = allocator.allocate(parent_id)
    return store.insert(parent_id, lft, rght, label)


class TestIntervalAllocator:
    """测试新节点的区间分配"""

    def test_first_root_on_empty_store(self, store):
        allocator = IntervalAllocator(store)
        assert allocator.allocate(None) == (1, 2)

    def test_child_on_empty_store_is_rejected(self, store):
        allocator = IntervalAllocator(store)
        with pytest.raises(ReferentialIntegrityError):
            allocator.allocate(1)

    def test_missing_parent_is_rejected(self, store):
        allocator = IntervalAllocator(store)
        add(store, allocator, "A")

        with pytest.raises(ReferentialIntegrityError):
            allocator.allocate(42)
        assert intervals(store) == {"A": (1, 2)}

    def test_roots_append_to_the_end(self, store):
        allocator = IntervalAllocator(store)
        add(store, allocator, "A")
        add(store, allocator, "B")
        add(store, allocator, "C")

        assert intervals(store) == {"A": (1, 2), "B": (3, 4), "C": (5, 6)}

    def test_worked_scenario(self, store):
        """两个根、A 下两个子节点，右侧的树整体平移"""
        allocator = IntervalAllocator(store)
        a = add(store, allocator, "A")
        add(store, allocator, "B")
        assert intervals(store) == {"A": (1, 2), "B": (3, 4)}

        add(store, allocator, "C", a.id)
        assert intervals(store) == {"A": (1, 4), "B": (5, 6), "C": (2, 3)}

        add(store, allocator, "D", a.id)
        assert intervals(store) == {"A": (1, 6), "B": (7, 8), "C": (2, 3), "D": (4, 5)}
        assert store.find_by_id(a.id).descendant_count == 2
        assert_valid_forest(store)

    def test_after_first_places_new_child_second(self, store):
        allocator = IntervalAllocator(store)
        root = add(store, allocator, "R")
        add(store, allocator, "c1", root.id)
        add(store, allocator, "c2", root.id)
        add(store, allocator, "c3", root.id)

        children = sorted(store.find_by_parent(root.id), key=lambda n: n.lft)
        assert [node.label for node in children] == ["c1", "c3", "c2"]
        assert_valid_forest(store)

    def test_first_placement(self, store):
        allocator = IntervalAllocator(store, ChildPlacement.FIRST)
        root = add(store, allocator, "R")
        for label in ["c1", "c2", "c3"]:
            add(store, allocator, label, root.id)

        children = sorted(store.find_by_parent(root.id), key=lambda n: n.lft)
        assert [node.label for node in children] == ["c3", "c2", "c1"]
        assert_valid_forest(store)

    def test_last_placement(self, store):
        allocator = IntervalAllocator(store, "last")
        root = add(store, allocator, "R")
        child = add(store, allocator, "c1", root.id)
        add(store, allocator, "g1", child.id)
        add(store, allocator, "c2", root.id)
        add(store, allocator, "c3", root.id)

        children = sorted(store.find_by_parent(root.id), key=lambda n: n.lft)
        assert [node.label for node in children] == ["c1", "c2", "c3"]
        assert intervals(store)["R"] == (1, 10)
        assert_valid_forest(store)

    def test_nested_child_shifts_ancestors_and_right_trees(self, store):
        allocator = IntervalAllocator(store)
        a = add(store, allocator, "A")
        b = add(store, allocator, "B", a.id)
        add(store, allocator, "Z")
        add(store, allocator, "C", b.id)

        assert intervals(store) == {"A": (1, 6), "B": (2, 5), "C": (3, 4), "Z": (7, 8)}
        assert_valid_forest(store)
