# -*- coding: utf-8 -*-
"""
兄弟移动器 - 交换相邻兄弟子树的区间
"""
from typing import Optional

from ...interfaces.inode_store import INodeStore, Predicate, Shift
from ...exceptions import NodeNotFoundError
from ..node.entity import Column, Node


class SiblingMover:
    """
    兄弟移动器

    两棵子树整体交换位置，各自内部的相对顺序和嵌套关系不变，
    其余节点不受影响。没有相邻兄弟时为空操作。
    """

    def __init__(self, store: INodeStore):
        self._store = store

    def move_left(self, node_id: int) -> bool:
        """
        与左侧相邻兄弟（rght == node.lft - 1）交换位置

        Returns:
            是否发生了移动
        """
        node = self._get(node_id)
        sibling = self._store.find_by_rght(node.lft - 1)
        return self._swap(node, sibling, direction=-1)

    def move_right(self, node_id: int) -> bool:
        """
        与右侧相邻兄弟（lft == node.rght + 1）交换位置

        Returns:
            是否发生了移动
        """
        node = self._get(node_id)
        sibling = self._store.find_by_lft(node.rght + 1)
        return self._swap(node, sibling, direction=1)

    def _get(self, node_id: int) -> Node:
        node = self._store.find_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def _swap(self, node: Node, sibling: Optional[Node], direction: int) -> bool:
        if sibling is None or sibling.parent_id != node.parent_id:
            return False

        node_size = node.span
        sibling_size = sibling.span
        node_range = Predicate.between(Column.LFT, node.lft, node.rght)

        # 已移动的节点集合，第二次更新时排除，避免重复平移
        moving_ids = self._store.find_ids(node_range)

        toward = direction * sibling_size
        self._store.bulk_update({Column.LFT: Shift(toward), Column.RGHT: Shift(toward)}, node_range)

        away = -direction * node_size
        self._store.bulk_update(
            {Column.LFT: Shift(away), Column.RGHT: Shift(away)},
            Predicate.between(Column.LFT, sibling.lft, sibling.rght) & Predicate.not_in(Column.ID, moving_ids)
        )
        return True
