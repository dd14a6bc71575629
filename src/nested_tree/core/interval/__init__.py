"""
区间模块 - 嵌套集合区间的分配、重建、移动、删除与检查
"""

from .allocator import IntervalAllocator, ChildPlacement
from .rebuilder import TreeRebuilder, DEFAULT_BATCH_SIZE
from .mover import SiblingMover
from .remover import NodeRemover, RemoveMode
from .checker import IntervalChecker

__all__ = [
    'IntervalAllocator',
    'ChildPlacement',
    'TreeRebuilder',
    'DEFAULT_BATCH_SIZE',
    'SiblingMover',
    'NodeRemover',
    'RemoveMode',
    'IntervalChecker'
]
