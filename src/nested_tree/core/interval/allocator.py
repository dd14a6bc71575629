# -*- coding: utf-8 -*-
"""
区间分配器 - 为新节点计算并提交 (lft, rght)
"""
from enum import Enum
from typing import Optional, Tuple

from ...interfaces.inode_store import INodeStore, Predicate, Shift
from ...exceptions import ReferentialIntegrityError
from ..node.entity import Column


class ChildPlacement(str, Enum):
    """新子节点在兄弟中的位置"""

    AFTER_FIRST = "after_first"  # 紧跟在当前第一个子节点之后
    FIRST = "first"
    LAST = "last"


class IntervalAllocator:
    """
    区间分配器

    使用全森林共享的单调计数空间分配区间，例如：
    空存储的第一个根:     (1, 2)
    之后的根追加到末尾:   (max_rght + 1, max_rght + 2)
    子节点插入锚点之后:   (anchor + 1, anchor + 2)，锚点右侧所有值 +2
    """

    def __init__(self, store: INodeStore,
                 placement: ChildPlacement = ChildPlacement.AFTER_FIRST):
        """
        初始化分配器

        Args:
            store: 节点存储
            placement: 父节点已有子节点时新节点的位置
        """
        self._store = store
        self._placement = ChildPlacement(placement)

    @property
    def placement(self) -> ChildPlacement:
        return self._placement

    def allocate(self, parent_id: Optional[int] = None) -> Tuple[int, int]:
        """
        为即将插入的节点分配区间，并平移受影响的已有节点

        调用方负责在同一事务中随后插入该节点。

        Args:
            parent_id: 父节点ID，None表示新根节点

        Returns:
            (lft, rght)

        Raises:
            ReferentialIntegrityError: 父节点不存在
        """
        if self._store.count() == 0:
            if parent_id is not None:
                raise ReferentialIntegrityError(
                    reason="存储为空，父节点不存在",
                    parent_id=parent_id
                )
            return 1, 2

        if parent_id is None:
            return self._allocate_root()

        anchor = self._find_anchor(parent_id)
        self._open_gap(anchor)
        return anchor + 1, anchor + 2

    def _allocate_root(self) -> Tuple[int, int]:
        """新根节点追加到编号空间末尾，无需平移"""
        max_rght = self._store.find_root_max_rght()
        if max_rght is None:
            # 只剩下失去根的行时，退回到全表最大值之后
            nodes = self._store.find_all()
            max_rght = max((node.rght for node in nodes), default=0)
        return max_rght + 1, max_rght + 2

    def _find_anchor(self, parent_id: int) -> int:
        """
        计算插入锚点：新节点占用 (anchor+1, anchor+2)

        - 父节点无子节点：锚点为 parent.lft
        - AFTER_FIRST：锚点为第一个子节点的 rght
        - FIRST：锚点为 parent.lft
        - LAST：锚点为 parent.rght - 1
        """
        parent = self._store.find_by_id(parent_id)
        if parent is None:
            raise ReferentialIntegrityError(
                reason=f"父节点不存在: {parent_id}",
                parent_id=parent_id
            )

        if self._placement is ChildPlacement.LAST:
            return parent.rght - 1

        first_child = self._store.find_first_child(parent_id)
        if first_child is None or self._placement is ChildPlacement.FIRST:
            return parent.lft

        return first_child.rght

    def _open_gap(self, anchor: int) -> None:
        """锚点右侧腾出两个编号：先平移 rght，再平移 lft"""
        self._store.bulk_update({Column.RGHT: Shift(2)}, Predicate.gt(Column.RGHT, anchor))
        self._store.bulk_update({Column.LFT: Shift(2)}, Predicate.gt(Column.LFT, anchor))
