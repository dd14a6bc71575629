"""
pytest配置文件
用于设置测试环境和共享fixtures
"""
import sys
import os

import pytest

# 将src目录添加到Python路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree import NestedTreeSystem
from nested_tree.data.storage.memory_store import MemoryStore
from nested_tree.data.storage.json_store import JSONStore
from nested_tree.data.storage.sqlite_store import SQLiteStore


@pytest.fixture(params=['memory', 'json', 'sqlite'])
def store(request, tmp_path):
    """参数化测试三种存储实现"""
    if request.param == 'memory':
        store = MemoryStore()
    elif request.param == 'json':
        store = JSONStore(str(tmp_path / "nodes.json"))
    else:  # sqlite
        store = SQLiteStore(str(tmp_path / "nodes.db"))

    yield store
    store.close()


@pytest.fixture
def system(store):
    """基于参数化存储的系统实例（关闭日志配置）"""
    return NestedTreeSystem(config={'enable_logging': False}, store=store)
