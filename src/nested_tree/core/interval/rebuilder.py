# -*- coding: utf-8 -*-
"""
树重建器 - 仅依据 parent_id 指针重新计算所有节点的区间
"""
import logging
from typing import Optional

from ...interfaces.inode_store import INodeStore, Predicate, SetValue
from ...exceptions import ReferentialIntegrityError
from ..node.entity import Column

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 999


class TreeRebuilder:
    """
    树重建器

    忽略已有的 lft/rght，按 id 升序（创建顺序）深度优先重新编号。
    根节点在同一遍历中处理，因此各棵树的编号区间首尾相接。
    """

    def __init__(self, store: INodeStore, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        初始化重建器

        Args:
            store: 节点存储
            batch_size: 每次读取子节点的分页大小
        """
        if batch_size < 1:
            raise ValueError(f"分页大小必须大于0: {batch_size}")

        self._store = store
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def rebuild(self, counter: int = 1, parent_id: Optional[int] = None) -> int:
        """
        重建 parent_id 对应节点（None 表示整个森林）的区间

        使用显式栈深度优先遍历，树的深度不受解释器递归深度限制。
        栈帧为 [节点ID, 当前页偏移, 当前页, 页内位置]。

        Args:
            counter: 起始编号
            parent_id: 节点ID

        Returns:
            处理完该节点后的下一个可用编号
        """
        page = self._page(parent_id, 0)

        if parent_id is not None:
            if not page:
                self._assign(parent_id, {Column.LFT: SetValue(counter), Column.RGHT: SetValue(counter + 1)})
                return counter + 2
            self._assign(parent_id, {Column.LFT: SetValue(counter)})
            counter += 1

        stack = [[parent_id, 0, page, 0]]
        while stack:
            frame = stack[-1]
            node_id, offset, page, index = frame

            if index < len(page):
                frame[3] += 1
                child = page[index]
                child_page = self._page(child.id, 0)
                if child_page:
                    self._assign(child.id, {Column.LFT: SetValue(counter)})
                    counter += 1
                    stack.append([child.id, 0, child_page, 0])
                else:
                    self._assign(child.id, {Column.LFT: SetValue(counter), Column.RGHT: SetValue(counter + 1)})
                    counter += 2
                continue

            # 当前页已处理完，满页时继续读取下一页
            if len(page) == self._batch_size:
                frame[1] = offset + self._batch_size
                frame[2] = self._page(node_id, frame[1])
                frame[3] = 0
                if frame[2]:
                    continue

            stack.pop()
            if node_id is not None:
                self._assign(node_id, {Column.RGHT: SetValue(counter)})
                counter += 1

        return counter

    def rebuild_all(self) -> int:
        """
        重建整个森林，并确认每一行都被编号

        每个被访问的节点恰好消耗两个编号，因此已编号的节点数为 (counter - 1) / 2；
        少于总行数说明存在无法从根到达的行（父节点缺失或循环引用）。

        Returns:
            已编号的节点数

        Raises:
            ReferentialIntegrityError: 存在无法到达的行
        """
        counter = self.rebuild(1, None)
        numbered = (counter - 1) // 2
        total = self._store.count()

        if numbered != total:
            raise ReferentialIntegrityError(
                reason=f"{total - numbered} 个节点无法从根节点到达（父节点缺失或存在循环）"
            )

        logger.debug(f"重建完成: {numbered} 个节点, 最大编号 {counter - 1}")
        return numbered

    def _assign(self, node_id: int, changes) -> None:
        updated = self._store.bulk_update(changes, Predicate.eq(Column.ID, node_id))
        if updated == 0:
            raise ReferentialIntegrityError(
                reason=f"父节点不存在: {node_id}",
                parent_id=node_id
            )

    def _page(self, parent_id: Optional[int], offset: int):
        return self._store.find_by_parent(parent_id, limit=self._batch_size, offset=offset)
