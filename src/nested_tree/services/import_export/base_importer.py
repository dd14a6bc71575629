"""
数据导入器基类
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Any

from ...exceptions import DataImportError


class DataImporter(ABC):
    """数据导入器抽象基类"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}
        self._validate_config()

    def _validate_config(self):
        """验证配置参数"""
        pass

    @abstractmethod
    def validate_source(self, source: Any) -> bool:
        """验证数据源是否可导入"""
        pass

    @abstractmethod
    def extract_metadata(self, source: Any) -> Dict[str, Any]:
        """提取数据源元数据"""
        pass

    @abstractmethod
    def parse_data(self, source: Any) -> Any:
        """读取数据源"""
        pass

    @abstractmethod
    def convert_to_records(self, data: Any) -> List[Dict[str, Any]]:
        """
        将数据转换为节点记录

        每条记录包含 key、parent_key、label
        """
        pass

    def import_data(self, source: Any) -> List[Dict[str, Any]]:
        """
        导入数据的完整流程
        1. 验证数据源
        2. 解析数据
        3. 转换为节点记录
        """
        if not self.validate_source(source):
            raise DataImportError(f"数据源验证失败: {source}", source=str(source))

        data = self.parse_data(source)
        return self.convert_to_records(data)
