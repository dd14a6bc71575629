"""
核心模块包
包含节点实体、区间维护算法与只读查询
"""

# 导入节点模块（须先于区间模块，接口定义依赖节点实体）
from .node import Column, Node, TreeNode

# 导入区间模块
from .interval import (
    IntervalAllocator,
    ChildPlacement,
    TreeRebuilder,
    SiblingMover,
    NodeRemover,
    RemoveMode,
    IntervalChecker
)

# 导入查询模块
from .query import TreeSnapshot, TreeQuery

__all__ = [
    # 节点模块
    'Column',
    'Node',
    'TreeNode',

    # 区间模块
    'IntervalAllocator',
    'ChildPlacement',
    'TreeRebuilder',
    'SiblingMover',
    'NodeRemover',
    'RemoveMode',
    'IntervalChecker',

    # 查询模块
    'TreeSnapshot',
    'TreeQuery',
]
