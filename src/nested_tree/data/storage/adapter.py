"""
存储适配器基类
为各存储实现提供统一的校验与排序规则
"""
from typing import Any, Dict, List, Mapping

from ...core.node.entity import Column, Node, UPDATABLE_COLUMNS
from ...interfaces.inode_store import INodeStore, Change, Shift, SetValue
from ...exceptions import DataStoreError


class DataStoreAdapter(INodeStore):
    """数据存储适配器抽象基类"""

    store_type = "abstract"

    def _check_changes(self, changes: Mapping[Column, Change]) -> None:
        """校验批量更新的列与变更类型"""
        if not changes:
            raise DataStoreError("批量更新缺少变更列", operation="bulk_update",
                                 store_type=self.store_type)

        for column, change in changes.items():
            if column not in UPDATABLE_COLUMNS:
                raise DataStoreError(f"不允许更新的列: {column}", operation="bulk_update",
                                     store_type=self.store_type)
            if isinstance(change, Shift) and column not in (Column.LFT, Column.RGHT):
                raise DataStoreError(f"只有区间列支持增量更新: {column.value}",
                                     operation="bulk_update", store_type=self.store_type)
            if not isinstance(change, (Shift, SetValue)):
                raise DataStoreError(f"未知的变更类型: {change!r}", operation="bulk_update",
                                     store_type=self.store_type)

    @staticmethod
    def _sorted_by_lft(nodes: List[Node]) -> List[Node]:
        return sorted(nodes, key=lambda n: (n.lft, n.id))

    @staticmethod
    def _sorted_by_id(nodes: List[Node]) -> List[Node]:
        return sorted(nodes, key=lambda n: n.id)

    @staticmethod
    def _page(nodes: List[Node], limit, offset: int) -> List[Node]:
        if limit is None:
            return nodes[offset:]
        return nodes[offset:offset + limit]

    def get_stats(self) -> Dict[str, Any]:
        """获取存储统计信息"""
        nodes = self.find_all()
        return {
            'store_type': self.store_type,
            'node_count': len(nodes),
            'root_count': sum(1 for node in nodes if node.is_root),
            'max_rght': max((node.rght for node in nodes), default=0)
        }

    def __str__(self):
        return f"{self.__class__.__name__}(nodes={self.count()})"
