# -*- coding: utf-8 -*-
"""
节点移除器 - 级联删除或提升子节点后删除
"""
from enum import Enum

from ...interfaces.inode_store import INodeStore, Predicate, Shift, SetValue
from ..node.entity import Column, Node


class RemoveMode(str, Enum):
    """删除方式"""

    CASCADE = "cascade"  # 删除节点及全部后代
    PROMOTE = "promote"  # 只删除节点，子节点上移一级


class NodeRemover:
    """
    节点移除器

    两种方式都使用调用方已知的节点区间；存储为空或没有匹配行时为空操作。
    """

    def __init__(self, store: INodeStore):
        self._store = store

    def remove(self, node: Node, mode: RemoveMode = RemoveMode.CASCADE) -> int:
        """
        删除节点

        Args:
            node: 待删除的节点（区间已知）
            mode: 删除方式

        Returns:
            删除的行数
        """
        if self._store.count() == 0:
            return 0

        if RemoveMode(mode) is RemoveMode.CASCADE:
            return self.remove_with_children(node)
        return self.remove_promoting_children(node)

    def remove_with_children(self, node: Node) -> int:
        """删除节点及其所有后代，并收拢留下的编号空隙"""
        span = node.span
        removed = self._store.delete_where(Predicate.between(Column.LFT, node.lft, node.rght))
        if removed == 0:
            return 0

        self._store.bulk_update({Column.LFT: Shift(-span)}, Predicate.gt(Column.LFT, node.rght))
        self._store.bulk_update({Column.RGHT: Shift(-span)}, Predicate.gt(Column.RGHT, node.rght))
        return removed

    def remove_promoting_children(self, node: Node) -> int:
        """
        只删除节点本身，子节点继承其层级

        子节点改挂到被删节点的父节点（根节点时为 None），
        区间内节点整体左移 1，右侧节点左移 2。
        """
        removed = self._store.delete_where(Predicate.eq(Column.ID, node.id))
        if removed == 0:
            return 0

        self._store.bulk_update(
            {Column.PARENT_ID: SetValue(node.parent_id)},
            Predicate.eq(Column.PARENT_ID, node.id)
        )
        self._store.bulk_update(
            {Column.LFT: Shift(-1), Column.RGHT: Shift(-1)},
            Predicate.between(Column.LFT, node.lft, node.rght)
        )
        # 右侧节点（lft 在原区间之外）与祖先（rght 在原区间之外）
        self._store.bulk_update({Column.LFT: Shift(-2)}, Predicate.gt(Column.LFT, node.rght))
        self._store.bulk_update({Column.RGHT: Shift(-2)}, Predicate.gt(Column.RGHT, node.rght))
        return removed
