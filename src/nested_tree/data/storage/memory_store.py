"""
内存存储实现
数据保存在内存中，程序结束即消失
"""
import copy
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ...core.node.entity import Column, Node
from ...interfaces.inode_store import Predicate, Change
from .adapter import DataStoreAdapter

T = TypeVar('T')


class MemoryStore(DataStoreAdapter):
    """内存存储实现"""

    store_type = "memory"

    def __init__(self):
        """初始化内存存储"""
        self._lock = threading.RLock()  # 线程安全锁

        # id -> 行字典（键为 Column 的值）
        self._rows: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

        # 事务嵌套深度
        self._tx_depth = 0

    # ========== 内部工具 ==========

    def _select(self, predicate: Predicate) -> List[Dict[str, Any]]:
        return [row for row in self._rows.values() if predicate.matches(row)]

    def _in_transaction(self) -> bool:
        return self._tx_depth > 0

    def _after_write(self) -> None:
        """写操作完成后的钩子（事务外的每次写入、事务提交时调用）"""
        pass

    def _written(self) -> None:
        if not self._in_transaction():
            self._after_write()

    # ========== 读取 ==========

    def find_by_id(self, node_id: int) -> Optional[Node]:
        with self._lock:
            row = self._rows.get(node_id)
            return Node.from_row(row) if row else None

    def find_all(self) -> List[Node]:
        with self._lock:
            return self._sorted_by_lft([Node.from_row(row) for row in self._rows.values()])

    def find_by_parent(self, parent_id: Optional[int],
                       limit: Optional[int] = None, offset: int = 0) -> List[Node]:
        with self._lock:
            rows = self._select(Predicate.eq(Column.PARENT_ID, parent_id))
            nodes = self._sorted_by_id([Node.from_row(row) for row in rows])
            return self._page(nodes, limit, offset)

    def find_root_max_rght(self) -> Optional[int]:
        with self._lock:
            roots = self._select(Predicate.eq(Column.PARENT_ID, None))
            return max((row['rght'] for row in roots), default=None)

    def find_first_child(self, parent_id: int) -> Optional[Node]:
        with self._lock:
            rows = self._select(Predicate.eq(Column.PARENT_ID, parent_id))
            nodes = self._sorted_by_lft([Node.from_row(row) for row in rows])
            return nodes[0] if nodes else None

    def find_by_rght(self, value: int) -> Optional[Node]:
        with self._lock:
            rows = self._select(Predicate.eq(Column.RGHT, value))
            nodes = self._sorted_by_id([Node.from_row(row) for row in rows])
            return nodes[0] if nodes else None

    def find_by_lft(self, value: int) -> Optional[Node]:
        with self._lock:
            rows = self._select(Predicate.eq(Column.LFT, value))
            nodes = self._sorted_by_id([Node.from_row(row) for row in rows])
            return nodes[0] if nodes else None

    def find_ids(self, predicate: Predicate) -> List[int]:
        with self._lock:
            return sorted(row['id'] for row in self._select(predicate))

    def count(self, predicate: Optional[Predicate] = None) -> int:
        with self._lock:
            if predicate is None:
                return len(self._rows)
            return len(self._select(predicate))

    # ========== 写入 ==========

    def insert(self, parent_id: Optional[int], lft: int, rght: int, label: str = "") -> Node:
        with self._lock:
            node = Node(id=self._next_id, parent_id=parent_id, lft=lft, rght=rght, label=label)
            self._rows[node.id] = node.to_row()
            self._next_id += 1
            self._written()
            return node

    def bulk_update(self, changes: Mapping[Column, Change], predicate: Predicate) -> int:
        with self._lock:
            self._check_changes(changes)

            # 先求值谓词，再基于旧值计算所有列
            matched = self._select(predicate)
            for row in matched:
                updated = {
                    column.value: change.apply(row[column.value])
                    for column, change in changes.items()
                }
                row.update(updated)

            if matched:
                self._written()
            return len(matched)

    def delete_where(self, predicate: Predicate) -> int:
        with self._lock:
            doomed = [row['id'] for row in self._select(predicate)]
            for node_id in doomed:
                del self._rows[node_id]

            if doomed:
                self._written()
            return len(doomed)

    def run_in_transaction(self, operation: Callable[[], T]) -> T:
        with self._lock:
            if self._in_transaction():
                return operation()

            rows_backup = copy.deepcopy(self._rows)
            next_id_backup = self._next_id
            self._tx_depth += 1
            try:
                try:
                    result = operation()
                finally:
                    self._tx_depth -= 1
                # 提交（文件存储在此落盘），失败同样回滚
                self._after_write()
            except Exception:
                self._rows = rows_backup
                self._next_id = next_id_backup
                raise

            return result

    def clear(self):
        """清空所有数据"""
        with self._lock:
            self._rows.clear()
            self._next_id = 1
            self._written()
