"""
快照
某一时刻全部节点的只读视图，按 lft 升序
"""
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ...exceptions import NodeNotFoundError
from ...interfaces.inode_store import INodeStore
from ..node.entity import Node


class TreeSnapshot:
    """
    树快照 - 单次查询调用的显式数据来源

    构造时做一次分组遍历：按 parent_id 归集子节点，只接受区间确实嵌套在
    父节点内的行；parent_id 与区间不一致的行单独记录为漂移行。
    """

    def __init__(self, nodes: Iterable[Node]):
        self._nodes: Tuple[Node, ...] = tuple(sorted(nodes, key=lambda n: (n.lft, n.id)))
        self._by_id: Dict[int, Node] = {node.id: node for node in self._nodes}

        self._roots: List[Node] = []
        self._children: Dict[int, List[Node]] = defaultdict(list)
        self._drifted: Dict[int, List[Node]] = defaultdict(list)

        for node in self._nodes:
            if node.parent_id is None:
                self._roots.append(node)
                continue

            parent = self._by_id.get(node.parent_id)
            if parent is not None and parent.contains(node):
                self._children[node.parent_id].append(node)
            else:
                self._drifted[node.parent_id].append(node)

        self._depths: Optional[Dict[int, int]] = None

    @classmethod
    def capture(cls, store: INodeStore) -> 'TreeSnapshot':
        """从存储读取一次全部节点"""
        return cls(store.find_all())

    # ========== 基本访问 ==========

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    def get(self, node_id: int) -> Optional[Node]:
        return self._by_id.get(node_id)

    def require(self, node_id: int) -> Node:
        """获取节点，不存在时抛出 NodeNotFoundError"""
        node = self._by_id.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    @property
    def roots(self) -> List[Node]:
        return list(self._roots)

    def children_of(self, node_id: int) -> List[Node]:
        """parent_id 匹配且区间嵌套的子节点，按 lft 升序"""
        return list(self._children.get(node_id, ()))

    def drifted_children_of(self, node_id: int) -> List[Node]:
        """parent_id 指向该节点但区间不在其内的行"""
        return list(self._drifted.get(node_id, ()))

    @property
    def drifted(self) -> List[Node]:
        """所有 parent_id 与区间不一致（或父节点缺失）的行"""
        return [node for nodes in self._drifted.values() for node in nodes]

    def depth(self, node_id: int) -> int:
        return self.depths()[self.require(node_id).id]

    def depths(self) -> Dict[int, int]:
        """
        所有节点的深度（祖先个数）

        按 lft 顺序维护一个祖先栈：栈顶 rght 小于当前 lft 的节点已结束，弹出；
        剩余的栈元素即当前节点的祖先。
        """
        if self._depths is None:
            depths: Dict[int, int] = {}
            stack: List[Node] = []
            for node in self._nodes:
                while stack and stack[-1].rght < node.lft:
                    stack.pop()
                depths[node.id] = len(stack)
                stack.append(node)
            self._depths = depths
        return self._depths

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._by_id

    def __repr__(self) -> str:
        return f"TreeSnapshot(nodes={len(self._nodes)}, roots={len(self._roots)})"
