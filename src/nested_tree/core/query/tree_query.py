"""
树查询
只读操作：子节点、后代数、祖先路径、缩进列表、嵌套树组装
所有查询都以调用方传入的 TreeSnapshot 为数据来源，不在调用中途重新读取
"""
from typing import Dict, List, Optional

from ...exceptions import IntervalCorruptionError
from ...interfaces.inode_store import INodeStore
from ..node.entity import Node, TreeNode
from .snapshot import TreeSnapshot


class TreeQuery:
    """树查询"""

    def __init__(self, store: INodeStore, strict_children: bool = False, separator: str = "-"):
        """
        初始化查询

        Args:
            store: 节点存储，仅用于 capture()
            strict_children: parent_id 与区间不一致时抛出异常而不是静默排除
            separator: selectables 的默认缩进符
        """
        self._store = store
        self._strict_children = strict_children
        self._separator = separator

    def capture(self) -> TreeSnapshot:
        """获取当前时刻的快照"""
        return TreeSnapshot.capture(self._store)

    # ========== 结构查询 ==========

    def children(self, snapshot: TreeSnapshot, node_id: int,
                 include_parent: bool = False) -> List[Node]:
        """
        获取直接子节点

        同时要求 parent_id 匹配与区间严格嵌套；不一致的行默认被排除。

        Args:
            snapshot: 快照
            node_id: 父节点ID
            include_parent: 结果中是否在最前面包含父节点本身（有子节点时）

        Returns:
            按 lft 升序的节点列表
        """
        parent = snapshot.require(node_id)
        self._check_drift(snapshot, node_id)

        children = snapshot.children_of(node_id)
        if include_parent and children:
            return [parent] + children
        return children

    def children_count(self, snapshot: TreeSnapshot, node_id: int) -> int:
        """parent_id 等于该节点的行数"""
        snapshot.require(node_id)
        return len(snapshot.children_of(node_id)) + len(snapshot.drifted_children_of(node_id))

    def descendants(self, snapshot: TreeSnapshot, node_id: int) -> List[Node]:
        """区间严格位于该节点区间内的所有节点"""
        target = snapshot.require(node_id)
        return [node for node in snapshot if target.contains(node)]

    def descendant_count(self, snapshot: TreeSnapshot, node_id: int) -> int:
        return snapshot.require(node_id).descendant_count

    def parent(self, snapshot: TreeSnapshot, node_id: int) -> Optional[Node]:
        node = snapshot.require(node_id)
        if node.parent_id is None:
            return None
        return snapshot.get(node.parent_id)

    def path(self, snapshot: TreeSnapshot, node_id: int) -> List[Node]:
        """
        祖先路径：区间严格包含目标的所有节点

        按 lft 升序返回，即从根到目标（不含目标本身）。
        """
        target = snapshot.require(node_id)
        return [node for node in snapshot if node.contains(target)]

    def roots(self, snapshot: TreeSnapshot) -> List[Node]:
        return snapshot.roots

    def last_root(self, snapshot: TreeSnapshot) -> Optional[Node]:
        roots = snapshot.roots
        return roots[-1] if roots else None

    # ========== 展示用数据 ==========

    def selectables(self, snapshot: TreeSnapshot, separator: Optional[str] = None) -> Dict[int, str]:
        """
        生成下拉选择列表：id -> 按深度重复缩进符后的名称

        深度由快照一次遍历得出；空名称不加缩进。
        """
        separator = self._separator if separator is None else separator
        depths = snapshot.depths()

        result: Dict[int, str] = {}
        for node in snapshot:
            label = node.label
            if label and depths[node.id] > 0:
                label = separator * depths[node.id] + label
            result[node.id] = label
        return result

    def tree(self, snapshot: TreeSnapshot) -> List[TreeNode]:
        """组装整个森林，按 lft 顺序返回各根节点"""
        if self._strict_children and snapshot.drifted:
            node = snapshot.drifted[0]
            raise IntervalCorruptionError(
                reason=f"parent_id={node.parent_id} 与区间不一致",
                node_id=node.id, lft=node.lft, rght=node.rght
            )
        return [self._assemble(snapshot, root, 0) for root in snapshot.roots]

    def subtree(self, snapshot: TreeSnapshot, node_id: int) -> TreeNode:
        """组装以某节点为根的子树"""
        node = snapshot.require(node_id)
        self._check_drift(snapshot, node_id)
        return self._assemble(snapshot, node, snapshot.depth(node_id))

    def _assemble(self, snapshot: TreeSnapshot, node: Node, depth: int) -> TreeNode:
        """基于快照的分组结果深度优先组装，避免递归过深"""
        top = TreeNode(node=node, depth=depth)
        stack = [top]
        while stack:
            current = stack.pop()
            for child in snapshot.children_of(current.id):
                child_node = TreeNode(node=child, depth=current.depth + 1)
                current.children.append(child_node)
                stack.append(child_node)
        return top

    def _check_drift(self, snapshot: TreeSnapshot, node_id: int) -> None:
        if not self._strict_children:
            return

        drifted = snapshot.drifted_children_of(node_id)
        if drifted:
            node = drifted[0]
            raise IntervalCorruptionError(
                reason=f"parent_id={node_id} 但区间不在父节点内",
                node_id=node.id, lft=node.lft, rght=node.rght
            )
