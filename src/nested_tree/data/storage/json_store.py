"""
JSON文件存储实现
将所有节点存储在单个JSON文件中，人类可读，轻量级
适用于小项目、原型开发、配置文件
"""

import json
from typing import Dict
from pathlib import Path

from .memory_store import MemoryStore
from .exceptions import StorageOperationError


class JSONStore(MemoryStore):
    """
    JSON文件存储 - 所有节点存在单个JSON文件中

    读写在内存中进行；事务外的每次写入以及事务提交时整体落盘，
    事务失败时内存回滚，文件保持不变。
    """

    store_type = "json"

    def __init__(self, file_path: str):
        """
        初始化JSON存储

        Args:
            file_path: JSON文件路径
        """
        super().__init__()
        self.file_path = Path(file_path)
        self._ensure_file_exists()
        self._load_into_memory()

    def _ensure_file_exists(self):
        """确保JSON文件存在"""
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._save_data({'next_id': 1, 'nodes': []})

    def _load_data(self) -> Dict:
        """加载JSON文件"""
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageOperationError(f"JSON文件损坏: {e}", operation="load", store_type=self.store_type)
        except OSError as e:
            raise StorageOperationError(f"读取JSON文件失败: {e}", operation="load", store_type=self.store_type)

    def _save_data(self, data: Dict):
        """保存JSON文件（先写临时文件再替换，避免写到一半损坏）"""
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.file_path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageOperationError(f"写入JSON文件失败: {e}", operation="save", store_type=self.store_type)

    def _load_into_memory(self):
        data = self._load_data()
        with self._lock:
            self._rows = {int(row['id']): dict(row) for row in data.get('nodes', [])}
            default_next = max(self._rows, default=0) + 1
            self._next_id = max(int(data.get('next_id', 1)), default_next)

    def _after_write(self) -> None:
        nodes = [self._rows[node_id] for node_id in sorted(self._rows)]
        self._save_data({'next_id': self._next_id, 'nodes': nodes})

    def reload(self):
        """丢弃内存状态，重新从文件加载"""
        self._load_into_memory()

    def __str__(self):
        return f"JSONStore(file={self.file_path}, nodes={self.count()})"
