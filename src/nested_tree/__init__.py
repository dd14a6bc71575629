"""
嵌套集合树 - 基于左右值区间的层级数据维护
"""

__version__ = "1.0.0"

from .system import NestedTreeSystem, TreeOperation

__all__ = ['NestedTreeSystem', 'TreeOperation']
