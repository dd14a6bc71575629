"""
系统配置设置
"""
import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, fields

from ..exceptions import ConfigError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_STORAGE_BACKENDS = ["memory", "json", "sqlite"]
VALID_CHILD_PLACEMENTS = ["after_first", "first", "last"]


@dataclass
class TreeSettings:
    """
    系统配置类
    使用dataclass确保配置的类型安全
    """

    # 系统基本配置
    system_name: str = "嵌套集合树"
    version: str = "1.0.0"

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_logging: bool = True

    # 存储配置
    storage_backend: str = "memory"  # memory, json, sqlite
    storage_path: Optional[str] = None

    # 树结构配置
    rebuild_batch_size: int = 999
    child_placement: str = "after_first"  # after_first, first, last
    strict_children: bool = False
    selectable_separator: str = "-"
    max_label_length: int = 255

    # 校验配置
    verify_after_write: bool = False

    def __post_init__(self):
        """初始化后处理，验证配置"""
        self._validate_settings()
        self._set_defaults()

    def _validate_settings(self):
        """验证配置值"""
        # 验证日志级别
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigError(
                message=f"无效的日志级别: {self.log_level}",
                config_key="log_level",
                context={"valid_values": VALID_LOG_LEVELS}
            )
        self.log_level = self.log_level.upper()

        # 验证存储后端
        if self.storage_backend not in VALID_STORAGE_BACKENDS:
            raise ConfigError(
                message=f"无效的存储后端: {self.storage_backend}",
                config_key="storage_backend",
                context={"valid_values": VALID_STORAGE_BACKENDS}
            )

        # 验证分页大小
        if not isinstance(self.rebuild_batch_size, int) or self.rebuild_batch_size < 1:
            raise ConfigError(
                message=f"重建分页大小必须是正整数: {self.rebuild_batch_size}",
                config_key="rebuild_batch_size"
            )

        # 验证子节点插入位置
        if self.child_placement not in VALID_CHILD_PLACEMENTS:
            raise ConfigError(
                message=f"无效的子节点插入位置: {self.child_placement}",
                config_key="child_placement",
                context={"valid_values": VALID_CHILD_PLACEMENTS}
            )

        if self.max_label_length < 1:
            raise ConfigError(
                message=f"名称最大长度必须大于0: {self.max_label_length}",
                config_key="max_label_length"
            )

    def _set_defaults(self):
        """设置默认值"""
        # 设置默认存储路径
        if self.storage_backend in ["json", "sqlite"] and not self.storage_path:
            self.storage_path = os.path.join(
                os.getcwd(),
                "data",
                f"nested_tree.{'json' if self.storage_backend == 'json' else 'db'}"
            )

        # 确保目录存在
        if self.storage_path:
            os.makedirs(os.path.dirname(os.path.abspath(self.storage_path)), exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'TreeSettings':
        """从字典创建配置"""
        # 过滤无效的配置键
        valid_keys = {f.name for f in fields(cls)}
        filtered_config = {k: v for k, v in config_dict.items() if k in valid_keys}

        return cls(**filtered_config)
