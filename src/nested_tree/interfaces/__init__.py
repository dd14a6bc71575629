"""
接口定义包
"""

from .inode_store import (
    INodeStore,
    Operator,
    Condition,
    Predicate,
    Shift,
    SetValue,
    Change
)

__all__ = [
    'INodeStore',
    'Operator',
    'Condition',
    'Predicate',
    'Shift',
    'SetValue',
    'Change'
]
