"""
SQLite数据库存储实现
数据保存在SQLite数据库中，所有语句参数化执行
"""
import json
import sqlite3
import threading
from typing import Any, Callable, List, Mapping, Optional, Tuple, TypeVar
from pathlib import Path
from contextlib import contextmanager

from ...core.node.entity import Column, Node
from ...interfaces.inode_store import Predicate, Condition, Operator, Change, Shift
from .adapter import DataStoreAdapter
from .exceptions import StorageConnectionError, StorageOperationError

T = TypeVar('T')

MEMORY_DB = ":memory:"


class SQLiteStore(DataStoreAdapter):
    """SQLite数据库存储实现"""

    store_type = "sqlite"

    def __init__(self, db_path: str = MEMORY_DB):
        """
        初始化SQLite存储

        Args:
            db_path: 数据库文件路径，":memory:" 表示内存数据库
        """
        self.db_path = db_path
        self._lock = threading.RLock()
        self._tx_conn: Optional[sqlite3.Connection] = None
        self._shared_conn: Optional[sqlite3.Connection] = None

        if db_path != MEMORY_DB:
            # 确保目录存在
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        else:
            # 内存数据库只在单个连接内存在
            self._shared_conn = self._connect()

        # 初始化数据库
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=30.0
            )
        except sqlite3.Error as e:
            raise StorageConnectionError(str(e), store_type=self.store_type) from e
        conn.row_factory = sqlite3.Row  # 返回字典式行
        return conn

    def _release(self, conn: sqlite3.Connection):
        if conn is not self._shared_conn:
            conn.close()

    @contextmanager
    def _get_connection(self):
        """获取数据库连接（上下文管理器）；事务中复用事务连接"""
        if self._tx_conn is not None:
            try:
                yield self._tx_conn
            except sqlite3.Error as e:
                raise StorageOperationError(str(e), operation="execute", store_type=self.store_type) from e
            return

        conn = self._shared_conn or self._connect()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageOperationError(str(e), operation="execute", store_type=self.store_type) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    def _init_database(self):
        """初始化数据库表结构"""
        with self._get_connection() as conn:
            # 节点表（parent_id 自引用由算法维护，不声明外键以允许事务内的中间状态）
            conn.execute("""
                CREATE TABLE IF NOT EXISTS nodes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    parent_id INTEGER,
                    lft INTEGER NOT NULL,
                    rght INTEGER NOT NULL,
                    label TEXT NOT NULL DEFAULT ''
                )
            """)

            # 创建索引
            conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes(parent_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_lft ON nodes(lft)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_rght ON nodes(rght)")

    # ========== 谓词转换 ==========

    @staticmethod
    def _condition_sql(condition: Condition) -> Tuple[str, List[Any]]:
        column = condition.column.value  # 列名只来自枚举
        op = condition.operator

        if op is Operator.IS_NULL:
            return f"{column} IS NULL", []
        if op is Operator.BETWEEN:
            low, high = condition.value
            return f"{column} BETWEEN ? AND ?", [low, high]
        if op is Operator.NOT_IN:
            # 任意长度的ID集合作为单个JSON参数传入
            return f"{column} NOT IN (SELECT value FROM json_each(?))", [json.dumps(list(condition.value))]
        return f"{column} {op.value} ?", [condition.value]

    def _where(self, predicate: Optional[Predicate]) -> Tuple[str, List[Any]]:
        if predicate is None or not predicate.conditions:
            return "", []

        clauses = []
        params: List[Any] = []
        for condition in predicate.conditions:
            sql, values = self._condition_sql(condition)
            clauses.append(sql)
            params.extend(values)
        return " WHERE " + " AND ".join(clauses), params

    def _fetch(self, sql: str, params: List[Any]) -> List[Node]:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(sql, params)
                return [Node.from_row(dict(row)) for row in cursor.fetchall()]

    def _fetch_one(self, sql: str, params: List[Any]) -> Optional[Node]:
        nodes = self._fetch(sql + " LIMIT 1", params)
        return nodes[0] if nodes else None

    # ========== 读取 ==========

    def find_by_id(self, node_id: int) -> Optional[Node]:
        return self._fetch_one("SELECT * FROM nodes WHERE id = ?", [node_id])

    def find_all(self) -> List[Node]:
        return self._fetch("SELECT * FROM nodes ORDER BY lft ASC, id ASC", [])

    def find_by_parent(self, parent_id: Optional[int],
                       limit: Optional[int] = None, offset: int = 0) -> List[Node]:
        where, params = self._where(Predicate.eq(Column.PARENT_ID, parent_id))
        sql = f"SELECT * FROM nodes{where} ORDER BY id ASC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params += [limit, offset]
        elif offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(offset)
        return self._fetch(sql, params)

    def find_root_max_rght(self) -> Optional[int]:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT MAX(rght) FROM nodes WHERE parent_id IS NULL")
                return cursor.fetchone()[0]

    def find_first_child(self, parent_id: int) -> Optional[Node]:
        return self._fetch_one(
            "SELECT * FROM nodes WHERE parent_id = ? ORDER BY lft ASC, id ASC", [parent_id]
        )

    def find_by_rght(self, value: int) -> Optional[Node]:
        return self._fetch_one("SELECT * FROM nodes WHERE rght = ? ORDER BY id ASC", [value])

    def find_by_lft(self, value: int) -> Optional[Node]:
        return self._fetch_one("SELECT * FROM nodes WHERE lft = ? ORDER BY id ASC", [value])

    def find_ids(self, predicate: Predicate) -> List[int]:
        where, params = self._where(predicate)
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(f"SELECT id FROM nodes{where} ORDER BY id ASC", params)
                return [row[0] for row in cursor.fetchall()]

    def count(self, predicate: Optional[Predicate] = None) -> int:
        where, params = self._where(predicate)
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(f"SELECT COUNT(*) FROM nodes{where}", params)
                return cursor.fetchone()[0]

    # ========== 写入 ==========

    def insert(self, parent_id: Optional[int], lft: int, rght: int, label: str = "") -> Node:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO nodes (parent_id, lft, rght, label) VALUES (?, ?, ?, ?)",
                    (parent_id, lft, rght, label)
                )
                return Node(id=cursor.lastrowid, parent_id=parent_id, lft=lft, rght=rght, label=label)

    def bulk_update(self, changes: Mapping[Column, Change], predicate: Predicate) -> int:
        self._check_changes(changes)

        assignments = []
        params: List[Any] = []
        for column, change in changes.items():
            if isinstance(change, Shift):
                assignments.append(f"{column.value} = {column.value} + ?")
                params.append(change.delta)
            else:
                assignments.append(f"{column.value} = ?")
                params.append(change.value)

        where, where_params = self._where(predicate)
        sql = f"UPDATE nodes SET {', '.join(assignments)}{where}"

        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(sql, params + where_params)
                return cursor.rowcount

    def delete_where(self, predicate: Predicate) -> int:
        where, params = self._where(predicate)
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(f"DELETE FROM nodes{where}", params)
                return cursor.rowcount

    def run_in_transaction(self, operation: Callable[[], T]) -> T:
        with self._lock:
            if self._tx_conn is not None:
                return operation()

            conn = self._shared_conn or self._connect()
            try:
                conn.execute("BEGIN IMMEDIATE")
                self._tx_conn = conn
                try:
                    result = operation()
                finally:
                    self._tx_conn = None
                conn.commit()
                return result
            except sqlite3.Error as e:
                conn.rollback()
                raise StorageOperationError(str(e), operation="transaction", store_type=self.store_type) from e
            except Exception:
                conn.rollback()
                raise
            finally:
                self._release(conn)

    def clear(self):
        """清空所有数据（测试用）"""
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM nodes")
                conn.execute("DELETE FROM sqlite_sequence WHERE name = 'nodes'")

    def close(self):
        """关闭数据库连接"""
        with self._lock:
            if self._shared_conn is not None:
                self._shared_conn.close()
                self._shared_conn = None

    def __str__(self):
        return f"SQLiteStore(db={self.db_path}, nodes={self.count()})"
