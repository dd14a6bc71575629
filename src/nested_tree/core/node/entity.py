"""
树节点实体模块
定义存储行（Node）与组装后的树节点（TreeNode）
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping


class Column(str, Enum):
    """节点表的列，同时作为字段访问表的键"""

    ID = "id"
    PARENT_ID = "parent_id"
    LFT = "lft"
    RGHT = "rght"
    LABEL = "label"


# 批量更新允许修改的列（id 由存储分配，不可修改）
UPDATABLE_COLUMNS = frozenset({Column.PARENT_ID, Column.LFT, Column.RGHT, Column.LABEL})


@dataclass(frozen=True)
class Node:
    """
    节点行 - 存储中的一行数据

    lft/rght 为嵌套集合区间，parent_id 为结构指针（不表示所有权）
    """

    id: int
    parent_id: Optional[int]
    lft: int
    rght: int
    label: str = ""

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def span(self) -> int:
        """区间跨度: 节点自身加上后代占用的编号空间"""
        return self.rght - self.lft + 1

    @property
    def descendant_count(self) -> int:
        return (self.rght - self.lft - 1) // 2

    def contains(self, other: 'Node') -> bool:
        """区间严格包含另一节点（即为其祖先）"""
        return self.lft < other.lft and other.rght < self.rght

    def get(self, column: Column) -> Any:
        return getattr(self, column.value)

    def to_row(self) -> Dict[str, Any]:
        return {column.value: self.get(column) for column in Column}

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Node':
        parent_id = row[Column.PARENT_ID.value]
        return cls(
            id=int(row[Column.ID.value]),
            parent_id=int(parent_id) if parent_id is not None else None,
            lft=int(row[Column.LFT.value]),
            rght=int(row[Column.RGHT.value]),
            label=row[Column.LABEL.value] or ""
        )


@dataclass
class TreeNode:
    """
    组装后的树节点

    每个节点拥有有序的子节点列表，由 TreeSnapshot 一次分组遍历构建
    """

    node: Node
    depth: int = 0
    children: List['TreeNode'] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.node.id

    @property
    def label(self) -> str:
        return self.node.label

    def walk(self):
        """前序遍历自身及所有后代"""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def size(self) -> int:
        return sum(1 for _ in self.walk())

    def to_dict(self, include_children: bool = True) -> Dict[str, Any]:
        """转换为字典，逐层展开而不递归"""
        result = self._row()
        if not include_children:
            return result

        stack = [(self, result)]
        while stack:
            current, converted = stack.pop()
            if not current.children:
                continue
            converted['children'] = []
            for child in current.children:
                child_dict = child._row()
                converted['children'].append(child_dict)
                stack.append((child, child_dict))
        return result

    def _row(self) -> Dict[str, Any]:
        row = self.node.to_row()
        row['depth'] = self.depth
        return row

    def __repr__(self) -> str:
        return f"TreeNode(id={self.id}, label={self.label!r}, children={len(self.children)})"
