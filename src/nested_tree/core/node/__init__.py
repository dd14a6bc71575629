"""
节点模块
"""

from .entity import Column, Node, TreeNode, UPDATABLE_COLUMNS

__all__ = ['Column', 'Node', 'TreeNode', 'UPDATABLE_COLUMNS']
