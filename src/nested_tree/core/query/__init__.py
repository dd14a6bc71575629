"""
查询模块
"""

from .snapshot import TreeSnapshot
from .tree_query import TreeQuery

__all__ = ['TreeSnapshot', 'TreeQuery']
