"""
测试系统主入口
"""
import logging

import pandas as pd
import pytest

from nested_tree import NestedTreeSystem, TreeOperation
from nested_tree.core.node import Column
from nested_tree.core.interval import RemoveMode
from nested_tree.interfaces.inode_store import Predicate, SetValue
from nested_tree.data.storage import JSONStore, SQLiteStore
from nested_tree.exceptions import (
    NodeNotFoundError, ReferentialIntegrityError, IntervalCorruptionError, ValidationError,
    DataImportError
)
from forest_helpers import intervals, assert_valid_forest


class TestNestedTreeSystem:
    """测试系统写操作与查询"""

    def test_worked_scenario(self, system):
        a = system.add_node("A")
        b = system.add_node("B")
        c = system.add_node("C", a.id)
        d = system.add_node("D", a.id)

        assert (a.lft, a.rght) == (1, 2)
        assert (b.lft, b.rght) == (3, 4)
        assert (c.lft, c.rght) == (2, 3)
        assert (d.lft, d.rght) == (4, 5)
        assert system.get_node(a.id).rght == 6
        assert system.get_node(b.id).lft == 7
        assert system.descendant_count(a.id) == 2
        assert [node.label for node in system.children(a.id)] == ["C", "D"]
        assert_valid_forest(system.store)

    def test_add_node_to_missing_parent_rolls_back(self, system):
        system.add_node("A")

        with pytest.raises(ReferentialIntegrityError):
            system.add_node("orphan", 42)
        assert system.store.count() == 1

    def test_add_node_validates_input(self, system):
        with pytest.raises(ValidationError):
            system.add_node(123)
        with pytest.raises(ValidationError):
            system.add_node("x", parent_id=0)

    def test_label_is_kept_verbatim(self, system):
        node = system.add_node("  root  ")

        assert node.label == "  root  "
        assert system.get_node(node.id).label == "  root  "

    def test_moves(self, system):
        root = system.add_node("R")
        first = system.add_node("first", root.id)
        second = system.add_node("second", root.id)

        assert system.move_right(first.id) is True
        assert [n.label for n in system.children(root.id)] == ["second", "first"]
        assert system.move_right(first.id) is False
        assert system.move_left(first.id) is True
        assert [n.label for n in system.children(root.id)] == ["first", "second"]
        assert second.id in system.selectables()

    def test_move_missing_node(self, system):
        with pytest.raises(NodeNotFoundError):
            system.move_left(5)

    def test_remove_node(self, system):
        root = system.add_node("R")
        a = system.add_node("A", root.id)
        system.add_node("A1", a.id)
        system.add_node("B", root.id)

        assert system.remove_node(a.id, RemoveMode.PROMOTE) == 1
        assert system.parent(system.roots()[0].id) is None
        assert [n.label for n in system.children(root.id)] == ["A1", "B"]

        assert system.remove_node(root.id, RemoveMode.CASCADE) == 3
        assert system.store.count() == 0

    def test_remove_missing_node_is_noop(self, system):
        system.add_node("R")
        assert system.remove_node(99) == 0
        assert system.remove_node(99, "cascade") == 0

    def test_set_parent(self, system):
        a = system.add_node("A")
        b = system.add_node("B")
        c = system.add_node("C", a.id)

        moved = system.set_parent(c.id, b.id)

        assert moved.parent_id == b.id
        assert intervals(system.store) == {"A": (1, 2), "B": (3, 6), "C": (4, 5)}
        assert [n.label for n in system.path(c.id)] == ["B"]
        assert_valid_forest(system.store)

    def test_set_parent_to_root(self, system):
        a = system.add_node("A")
        c = system.add_node("C", a.id)

        system.set_parent(c.id, None)
        assert [n.label for n in system.roots()] == ["A", "C"]

    def test_set_parent_rejects_cycles(self, system):
        a = system.add_node("A")
        b = system.add_node("B", a.id)
        before = intervals(system.store)

        with pytest.raises(ReferentialIntegrityError):
            system.set_parent(a.id, b.id)
        with pytest.raises(ReferentialIntegrityError):
            system.set_parent(a.id, a.id)
        with pytest.raises(ReferentialIntegrityError):
            system.set_parent(a.id, 77)
        with pytest.raises(NodeNotFoundError):
            system.set_parent(77, a.id)

        assert intervals(system.store) == before

    def test_update_label(self, system):
        a = system.add_node("A")

        assert system.update_label(a.id, "renamed").label == "renamed"
        with pytest.raises(NodeNotFoundError):
            system.update_label(99, "x")

    def test_rebuild(self, system):
        a = system.add_node("A")
        system.add_node("B", a.id)
        system.store.bulk_update({Column.LFT: SetValue(0), Column.RGHT: SetValue(0)}, Predicate.all())

        assert system.rebuild() == 2
        assert intervals(system.store) == {"A": (1, 4), "B": (2, 3)}

    def test_rebuild_with_orphans_rolls_back(self, system):
        system.add_node("A")
        system.store.insert(50, 9, 10, "orphan")
        before = intervals(system.store)

        with pytest.raises(ReferentialIntegrityError):
            system.rebuild()
        assert intervals(system.store) == before

    def test_queries_share_one_snapshot(self, system):
        a = system.add_node("A")
        c = system.add_node("C", a.id)
        snapshot = system.snapshot()

        system.update_label(c.id, "changed")

        assert system.children(a.id, snapshot=snapshot)[0].label == "C"
        assert system.children(a.id)[0].label == "changed"

    def test_tree_and_subtree(self, system):
        a = system.add_node("A")
        c = system.add_node("C", a.id)
        system.add_node("E", c.id)
        system.add_node("B")

        forest = system.tree()
        assert [root.label for root in forest] == ["A", "B"]
        assert system.subtree(c.id).size() == 2
        assert system.last_root().label == "B"
        assert system.children_count(a.id) == 1
        assert system.selectables(separator="*")[3] == "**E"

    def test_execute_dispatch(self, system):
        root = system.execute(TreeOperation.ADD_NODE, "R")
        child = system.execute("add_node", "child", root.id)

        assert system.execute(TreeOperation.DESCENDANT_COUNT, root.id) == 1
        assert system.execute(TreeOperation.PARENT, child.id).id == root.id
        assert system.execute(TreeOperation.REMOVE_NODE, child.id, RemoveMode.CASCADE) == 1

        with pytest.raises(ValueError):
            system.execute("no_such_operation")

    def test_stats_and_health(self, system):
        a = system.add_node("A")
        system.add_node("B", a.id)
        system.add_node("C")

        stats = system.get_stats()
        assert stats == {"node_count": 3, "root_count": 2, "max_depth": 2, "max_rght": 6}
        assert system.get_system_info()["stats"]["node_count"] == 3
        assert system.health_check()["status"] == "healthy"

        system.store.bulk_update({Column.RGHT: SetValue(1)}, Predicate.eq(Column.ID, a.id))
        health = system.health_check()
        assert health["status"] == "corrupted"
        assert health["issues"]

    def test_verify_after_write_rolls_back_corruption(self, store):
        system = NestedTreeSystem(config={'enable_logging': False, 'verify_after_write': True}, store=store)
        a = system.add_node("A")
        # 人为制造漂移：B 的 parent_id 指向 A，但区间在 A 之外
        store.insert(a.id, 3, 4, "B")

        with pytest.raises(IntervalCorruptionError):
            system.add_node("C")
        assert store.count() == 2

    def test_strict_children_setting(self, store):
        system = NestedTreeSystem(config={'enable_logging': False, 'strict_children': True}, store=store)
        a = system.add_node("A")
        store.insert(a.id, 3, 4, "drifted")

        with pytest.raises(IntervalCorruptionError):
            system.children(a.id)


class TestSystemConfiguration:
    """测试按配置创建系统"""

    def test_default_memory_system(self):
        system = NestedTreeSystem(config={'enable_logging': False})
        system.add_node("A")
        assert "MemoryStore" in repr(system)

    def test_json_backend(self, tmp_path):
        path = str(tmp_path / "tree.json")
        system = NestedTreeSystem(config={
            'enable_logging': False, 'storage_backend': 'json', 'storage_path': path
        })
        system.add_node("A")

        assert isinstance(system.store, JSONStore)
        assert JSONStore(path).count() == 1

    def test_sqlite_backend(self, tmp_path):
        path = str(tmp_path / "tree.db")
        system = NestedTreeSystem(config={
            'enable_logging': False, 'storage_backend': 'sqlite', 'storage_path': path
        })
        system.add_node("A")
        system.close()

        assert isinstance(system.store, SQLiteStore)
        assert SQLiteStore(path).count() == 1

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            NestedTreeSystem(config={'storage_backend': 'redis'})

    def test_failed_write_is_logged(self, caplog):
        system = NestedTreeSystem(config={'enable_logging': False})

        with caplog.at_level(logging.ERROR, logger="nested_tree.system"):
            with pytest.raises(ReferentialIntegrityError):
                system.add_node("x", 5)

        assert "add_node" in caplog.text

    def test_import_and_export_table(self, tmp_path):
        system = NestedTreeSystem(config={'enable_logging': False, 'rebuild_batch_size': 2})
        key_to_id = system.import_table(pd.DataFrame({'label': ["A", "  B", "  C", "D"]}))

        assert len(key_to_id) == 4
        assert [n.label for n in system.children(key_to_id[0])] == ["B", "C"]

        path = system.export_table(str(tmp_path / "out.csv"))
        exported = pd.read_csv(path)
        assert exported['label'].tolist() == ["A", "B", "C", "D"]

    def test_import_keeps_moved_siblings(self):
        system = NestedTreeSystem(config={'enable_logging': False})
        root = system.add_node("R")
        first = system.add_node("c1", root.id)
        system.add_node("c2", root.id)
        system.add_node("c3", root.id)
        system.move_right(first.id)

        system.import_table(pd.DataFrame({'label': ["X"]}))

        assert [n.label for n in system.children(root.id)] == ["c3", "c1", "c2"]
        assert [n.label for n in system.roots()] == ["R", "X"]
        assert_valid_forest(system.store)

    def test_import_respects_label_limit(self):
        system = NestedTreeSystem(config={'enable_logging': False, 'max_label_length': 3})

        with pytest.raises(DataImportError):
            system.import_table(pd.DataFrame({'label': ["abcd"]}))
        assert system.store.count() == 0
