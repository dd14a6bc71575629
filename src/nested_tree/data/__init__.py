"""
数据模块
包含节点存储后端
"""

from .storage import (
    DataStoreAdapter,
    MemoryStore,
    JSONStore,
    SQLiteStore,
    create_store
)

__all__ = [
    'DataStoreAdapter',
    'MemoryStore',
    'JSONStore',
    'SQLiteStore',
    'create_store'
]
