"""
嵌套集合树系统主入口
集成配置、存储、区间维护与查询模块，提供完整的管理接口
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar
from datetime import datetime

from .exceptions import NodeNotFoundError, ReferentialIntegrityError
from .config.settings import TreeSettings
from .config.validator import ConfigValidator

from .core.node import Column, Node, TreeNode
from .core.interval import (
    IntervalAllocator, ChildPlacement, TreeRebuilder,
    SiblingMover, NodeRemover, RemoveMode, IntervalChecker
)
from .core.query import TreeSnapshot, TreeQuery
from .data.storage import DataStoreAdapter, create_store
from .interfaces.inode_store import INodeStore, Predicate, SetValue
from .services.import_export import TableImporter, TableExporter

T = TypeVar('T')


class TreeOperation(str, Enum):
    """系统支持的具名操作"""

    ADD_NODE = "add_node"
    REBUILD = "rebuild"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    REMOVE_NODE = "remove_node"
    SET_PARENT = "set_parent"
    UPDATE_LABEL = "update_label"
    GET_NODE = "get_node"
    CHILDREN = "children"
    CHILDREN_COUNT = "children_count"
    DESCENDANT_COUNT = "descendant_count"
    PARENT = "parent"
    PATH = "path"
    ROOTS = "roots"
    LAST_ROOT = "last_root"
    SELECTABLES = "selectables"
    TREE = "tree"
    SUBTREE = "subtree"
    CHECK = "check"


class NestedTreeSystem:
    """
    嵌套集合树系统主类

    所有多语句写操作都在存储事务中执行：要么完整成功（不变式恢复），
    要么完整失败（存储保持调用前的状态）。
    """

    def __init__(
            self,
            config: Optional[Dict[str, Any]] = None,
            store: Optional[INodeStore] = None
    ):
        """
        初始化系统

        Args:
            config: 系统配置字典
            store: 节点存储（默认按配置创建）
        """
        # 加载配置
        self.validator = ConfigValidator()
        if config:
            self.validator.validate_system_config(config)
        self.settings = TreeSettings.from_dict(config) if config else TreeSettings()
        self.validator = ConfigValidator(max_label_length=self.settings.max_label_length)

        # 初始化日志
        self._setup_logging()
        self.logger = logging.getLogger(__name__)

        # 存储
        self._store = store or self._create_store()
        self.logger.info(f"使用存储引擎: {self._store.__class__.__name__}")

        # 核心组件
        self.allocator = IntervalAllocator(self._store, ChildPlacement(self.settings.child_placement))
        self.rebuilder = TreeRebuilder(self._store, batch_size=self.settings.rebuild_batch_size)
        self.mover = SiblingMover(self._store)
        self.remover = NodeRemover(self._store)
        self.checker = IntervalChecker()
        self.query = TreeQuery(
            self._store,
            strict_children=self.settings.strict_children,
            separator=self.settings.selectable_separator
        )

        self._start_time = datetime.now()
        self.logger.info(f"{self.settings.system_name} 初始化完成")

    def _setup_logging(self):
        """配置日志系统"""
        if not self.settings.enable_logging:
            return

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if self.settings.log_file:
            handlers.append(logging.FileHandler(self.settings.log_file, encoding='utf-8'))

        logging.basicConfig(
            level=getattr(logging, self.settings.log_level),
            format=self.settings.log_format,
            handlers=handlers
        )

    def _create_store(self) -> DataStoreAdapter:
        backend = self.settings.storage_backend
        if backend == 'json':
            return create_store('json', file_path=self.settings.storage_path)
        if backend == 'sqlite':
            return create_store('sqlite', db_path=self.settings.storage_path)
        return create_store('memory')

    @property
    def store(self) -> INodeStore:
        return self._store

    def _transaction(self, operation: TreeOperation, work: Callable[[], T]) -> T:
        """在事务中执行写操作，按配置在提交前做一致性检查"""
        def run():
            result = work()
            if self.settings.verify_after_write:
                self.checker.check(self.query.capture())
            return result

        try:
            return self._store.run_in_transaction(run)
        except Exception as e:
            self.logger.error(f"操作失败[{operation.value}]，已回滚: {e}")
            raise

    # ========== 写操作 ==========

    def add_node(self, label: str = "", parent_id: Optional[int] = None) -> Node:
        """
        添加节点

        Args:
            label: 显示名称
            parent_id: 父节点ID，None表示新根节点

        Returns:
            新节点（含存储分配的ID与区间）
        """
        label = self.validator.validate_label(label)
        parent_id = self.validator.validate_node_id(parent_id, field="parent_id", allow_none=True)

        def work() -> Node:
            lft, rght = self.allocator.allocate(parent_id)
            return self._store.insert(parent_id, lft, rght, label)

        node = self._transaction(TreeOperation.ADD_NODE, work)
        self.logger.info(f"添加节点成功: {node.label!r} id={node.id} ({node.lft}, {node.rght})")
        return node

    def rebuild(self) -> int:
        """
        依据 parent_id 重建整个森林的区间

        Returns:
            已编号的节点数
        """
        numbered = self._transaction(TreeOperation.REBUILD, self.rebuilder.rebuild_all)
        self.logger.info(f"重建完成: {numbered} 个节点")
        return numbered

    def move_left(self, node_id: int) -> bool:
        """与左侧相邻兄弟交换位置，没有兄弟时返回 False"""
        moved = self._transaction(TreeOperation.MOVE_LEFT, lambda: self.mover.move_left(node_id))
        self._log_move(node_id, "左", moved)
        return moved

    def move_right(self, node_id: int) -> bool:
        """与右侧相邻兄弟交换位置，没有兄弟时返回 False"""
        moved = self._transaction(TreeOperation.MOVE_RIGHT, lambda: self.mover.move_right(node_id))
        self._log_move(node_id, "右", moved)
        return moved

    def _log_move(self, node_id: int, direction: str, moved: bool):
        if moved:
            self.logger.info(f"节点 {node_id} 向{direction}移动成功")
        else:
            self.logger.warning(f"节点 {node_id} 没有{direction}侧相邻兄弟，未移动")

    def remove_node(self, node_id: int, mode: RemoveMode = RemoveMode.CASCADE) -> int:
        """
        删除节点

        Args:
            node_id: 节点ID
            mode: CASCADE 连同后代删除；PROMOTE 只删除节点，子节点上移一级

        Returns:
            删除的行数，节点不存在时为 0
        """
        mode = RemoveMode(mode)

        def work() -> int:
            node = self._store.find_by_id(node_id)
            if node is None:
                return 0
            return self.remover.remove(node, mode)

        removed = self._transaction(TreeOperation.REMOVE_NODE, work)
        if removed:
            self.logger.info(f"删除节点成功: id={node_id} ({mode.value}), 共 {removed} 行")
        else:
            self.logger.info(f"节点不存在，无需删除: id={node_id}")
        return removed

    def set_parent(self, node_id: int, parent_id: Optional[int]) -> Node:
        """
        修改节点的父节点并重建区间

        Raises:
            NodeNotFoundError: 节点不存在
            ReferentialIntegrityError: 新父节点不存在或位于节点自身子树中
        """
        parent_id = self.validator.validate_node_id(parent_id, field="parent_id", allow_none=True)

        def work() -> Node:
            node = self._store.find_by_id(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)

            if parent_id is not None:
                parent = self._store.find_by_id(parent_id)
                if parent is None:
                    raise ReferentialIntegrityError(
                        reason=f"父节点不存在: {parent_id}", node_id=node_id, parent_id=parent_id
                    )
                if parent.id == node.id or node.contains(parent):
                    raise ReferentialIntegrityError(
                        reason="不能把节点移动到自身或其后代之下", node_id=node_id, parent_id=parent_id
                    )

            self._store.bulk_update({Column.PARENT_ID: SetValue(parent_id)}, Predicate.eq(Column.ID, node_id))
            self.rebuilder.rebuild_all()
            return self._store.find_by_id(node_id)

        node = self._transaction(TreeOperation.SET_PARENT, work)
        self.logger.info(f"修改父节点成功: id={node_id} -> parent={parent_id}")
        return node

    def update_label(self, node_id: int, label: str) -> Node:
        """修改节点名称"""
        label = self.validator.validate_label(label)

        def work() -> Node:
            updated = self._store.bulk_update({Column.LABEL: SetValue(label)}, Predicate.eq(Column.ID, node_id))
            if updated == 0:
                raise NodeNotFoundError(node_id)
            return self._store.find_by_id(node_id)

        return self._transaction(TreeOperation.UPDATE_LABEL, work)

    # ========== 查询 ==========

    def snapshot(self) -> TreeSnapshot:
        """获取当前时刻的快照，可传给多个查询复用"""
        return self.query.capture()

    def _snap(self, snapshot: Optional[TreeSnapshot]) -> TreeSnapshot:
        return snapshot if snapshot is not None else self.query.capture()

    def get_node(self, node_id: int) -> Node:
        node = self._store.find_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def children(self, node_id: int, include_parent: bool = False,
                 snapshot: Optional[TreeSnapshot] = None) -> List[Node]:
        return self.query.children(self._snap(snapshot), node_id, include_parent=include_parent)

    def children_count(self, node_id: int, snapshot: Optional[TreeSnapshot] = None) -> int:
        return self.query.children_count(self._snap(snapshot), node_id)

    def descendant_count(self, node_id: int, snapshot: Optional[TreeSnapshot] = None) -> int:
        return self.query.descendant_count(self._snap(snapshot), node_id)

    def parent(self, node_id: int, snapshot: Optional[TreeSnapshot] = None) -> Optional[Node]:
        return self.query.parent(self._snap(snapshot), node_id)

    def path(self, node_id: int, snapshot: Optional[TreeSnapshot] = None) -> List[Node]:
        return self.query.path(self._snap(snapshot), node_id)

    def roots(self, snapshot: Optional[TreeSnapshot] = None) -> List[Node]:
        return self.query.roots(self._snap(snapshot))

    def last_root(self, snapshot: Optional[TreeSnapshot] = None) -> Optional[Node]:
        return self.query.last_root(self._snap(snapshot))

    def selectables(self, separator: Optional[str] = None,
                    snapshot: Optional[TreeSnapshot] = None) -> Dict[int, str]:
        return self.query.selectables(self._snap(snapshot), separator)

    def tree(self, snapshot: Optional[TreeSnapshot] = None) -> List[TreeNode]:
        return self.query.tree(self._snap(snapshot))

    def subtree(self, node_id: int, snapshot: Optional[TreeSnapshot] = None) -> TreeNode:
        return self.query.subtree(self._snap(snapshot), node_id)

    def check(self, snapshot: Optional[TreeSnapshot] = None) -> None:
        """一致性检查，发现问题时抛出异常"""
        self.checker.check(self._snap(snapshot))

    # ========== 导入导出 ==========

    def import_table(self, source: Any, **options) -> Dict[Any, int]:
        """
        从 CSV / Excel 文件或 DataFrame 导入节点

        Args:
            source: 文件路径或 DataFrame
            **options: TableImporter 配置项

        Returns:
            源数据键到新节点ID的映射
        """
        options.setdefault('batch_size', self.settings.rebuild_batch_size)
        options.setdefault('max_label_length', self.settings.max_label_length)
        importer = TableImporter(self._store, options)
        try:
            return importer.load(source)
        except Exception as e:
            self.logger.error(f"导入失败: {e}")
            raise

    def export_table(self, file_path: str, outline: bool = False) -> str:
        """导出当前树到 CSV / Excel 文件"""
        path = TableExporter().export(self.query.capture(), file_path, outline=outline)
        return str(path)

    # ========== 具名操作分发 ==========

    def execute(self, operation: TreeOperation, *args, **kwargs) -> Any:
        """
        按具名操作执行

        Args:
            operation: 操作（TreeOperation 或其值）
            *args, **kwargs: 传给对应方法的参数
        """
        handlers: Dict[TreeOperation, Callable[..., Any]] = {
            TreeOperation.ADD_NODE: self.add_node,
            TreeOperation.REBUILD: self.rebuild,
            TreeOperation.MOVE_LEFT: self.move_left,
            TreeOperation.MOVE_RIGHT: self.move_right,
            TreeOperation.REMOVE_NODE: self.remove_node,
            TreeOperation.SET_PARENT: self.set_parent,
            TreeOperation.UPDATE_LABEL: self.update_label,
            TreeOperation.GET_NODE: self.get_node,
            TreeOperation.CHILDREN: self.children,
            TreeOperation.CHILDREN_COUNT: self.children_count,
            TreeOperation.DESCENDANT_COUNT: self.descendant_count,
            TreeOperation.PARENT: self.parent,
            TreeOperation.PATH: self.path,
            TreeOperation.ROOTS: self.roots,
            TreeOperation.LAST_ROOT: self.last_root,
            TreeOperation.SELECTABLES: self.selectables,
            TreeOperation.TREE: self.tree,
            TreeOperation.SUBTREE: self.subtree,
            TreeOperation.CHECK: self.check,
        }
        return handlers[TreeOperation(operation)](*args, **kwargs)

    # ========== 系统状态 ==========

    def get_stats(self, snapshot: Optional[TreeSnapshot] = None) -> Dict[str, Any]:
        """获取树统计信息"""
        snapshot = self._snap(snapshot)
        depths = snapshot.depths()
        return {
            "node_count": len(snapshot),
            "root_count": len(snapshot.roots),
            "max_depth": max(depths.values(), default=-1) + 1,
            "max_rght": max((node.rght for node in snapshot), default=0)
        }

    def get_system_info(self) -> Dict[str, Any]:
        """获取系统信息"""
        return {
            "system_name": self.settings.system_name,
            "version": self.settings.version,
            "start_time": self._start_time.isoformat(),
            "uptime": str(datetime.now() - self._start_time),
            "storage": self._store.__class__.__name__,
            "stats": self.get_stats(),
            "settings": {
                "child_placement": self.settings.child_placement,
                "rebuild_batch_size": self.settings.rebuild_batch_size,
                "strict_children": self.settings.strict_children,
                "log_level": self.settings.log_level
            }
        }

    def health_check(self) -> Dict[str, Any]:
        """系统健康检查：对当前数据做一次一致性检查"""
        problems = self.checker.find_problems(self.query.capture())
        status = {
            "status": "healthy" if not problems else "corrupted",
            "timestamp": datetime.now().isoformat(),
            "storage": self._store.__class__.__name__
        }
        if problems:
            status["issues"] = [problem.to_dict() for problem in problems]
        return status

    def close(self):
        self._store.close()

    def __repr__(self) -> str:
        return f"NestedTreeSystem(name={self.settings.system_name!r}, store={self._store})"
