"""
随机森林上的不变式测试
对随机操作序列检查：区间嵌套、parent_id 一致、编号紧凑、后代数公式
"""
import random

import pytest

from nested_tree import NestedTreeSystem
from nested_tree.core.interval import RemoveMode
from nested_tree.core.query import TreeSnapshot
from nested_tree.data.storage import MemoryStore
from forest_helpers import intervals, assert_valid_forest


def random_forest(system, rng, size):
    ids = []
    for i in range(size):
        parent_id = rng.choice(ids) if ids and rng.random() < 0.8 else None
        ids.append(system.add_node(f"n{i}", parent_id).id)
    return ids


def assert_descendant_formula(store):
    snapshot = TreeSnapshot.capture(store)
    for node in snapshot:
        counted = sum(1 for other in snapshot if node.contains(other))
        assert node.descendant_count == counted


@pytest.fixture
def memory_system():
    return NestedTreeSystem(config={'enable_logging': False}, store=MemoryStore())


class TestRandomForests:
    """随机操作后的不变式"""

    @pytest.mark.parametrize("seed", range(8))
    def test_inserts_keep_forest_valid(self, memory_system, seed):
        rng = random.Random(seed)
        random_forest(memory_system, rng, 40)

        assert_valid_forest(memory_system.store)
        assert_descendant_formula(memory_system.store)

    @pytest.mark.parametrize("placement", ["after_first", "first", "last"])
    def test_placements_keep_forest_valid(self, placement):
        system = NestedTreeSystem(
            config={'enable_logging': False, 'child_placement': placement}, store=MemoryStore()
        )
        random_forest(system, random.Random(7), 30)

        assert_valid_forest(system.store)

    @pytest.mark.parametrize("seed", range(6))
    def test_mixed_operations_keep_forest_valid(self, memory_system, seed):
        rng = random.Random(seed)
        ids = random_forest(memory_system, rng, 30)

        for _ in range(40):
            live = [node.id for node in memory_system.store.find_all()]
            if not live:
                break

            action = rng.choice(["add", "left", "right", "cascade", "promote"])
            target = rng.choice(live)
            if action == "add":
                ids.append(memory_system.add_node("x", target).id)
            elif action == "left":
                memory_system.move_left(target)
            elif action == "right":
                memory_system.move_right(target)
            elif action == "cascade":
                memory_system.remove_node(target, RemoveMode.CASCADE)
            else:
                memory_system.remove_node(target, RemoveMode.PROMOTE)

            assert_valid_forest(memory_system.store)

        assert_descendant_formula(memory_system.store)

    @pytest.mark.parametrize("seed", range(4))
    def test_rebuild_of_valid_forest_keeps_structure(self, seed):
        """按 id 顺序插入到最后时，重建结果与增量维护的结果一致"""
        system = NestedTreeSystem(
            config={'enable_logging': False, 'child_placement': 'last'}, store=MemoryStore()
        )
        random_forest(system, random.Random(seed), 35)
        before = intervals(system.store)

        system.rebuild()

        assert intervals(system.store) == before

    @pytest.mark.parametrize("seed", range(4))
    def test_move_left_then_right_restores(self, memory_system, seed):
        rng = random.Random(seed)
        random_forest(memory_system, rng, 30)
        before = intervals(memory_system.store)

        for node in memory_system.store.find_all():
            if memory_system.move_left(node.id):
                memory_system.move_right(node.id)
                assert intervals(memory_system.store) == before

    def test_descendants_reported_before_cascade(self, memory_system):
        rng = random.Random(11)
        random_forest(memory_system, rng, 40)

        for node in memory_system.roots():
            expected = memory_system.descendant_count(node.id) + 1
            assert memory_system.remove_node(node.id, RemoveMode.CASCADE) == expected

        assert memory_system.store.count() == 0
