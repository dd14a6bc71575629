"""
配置验证器
"""
from typing import Dict, Any, Optional

from ..exceptions import ValidationError, ConfigError
from .settings import VALID_STORAGE_BACKENDS, VALID_CHILD_PLACEMENTS


class ConfigValidator:
    """配置与节点数据验证器"""

    def __init__(self, max_label_length: int = 255):
        self._max_label_length = max_label_length

    def validate_system_config(self, config: Dict[str, Any]) -> bool:
        """验证系统配置字典"""
        try:
            # 验证存储后端
            backend = config.get('storage_backend', 'memory')
            if backend not in VALID_STORAGE_BACKENDS:
                raise ValidationError(
                    message=f"无效的存储后端: {backend}",
                    field="storage_backend",
                    value=backend,
                    reason=f"必须是 {VALID_STORAGE_BACKENDS} 之一"
                )

            # 文件类后端的路径
            path = config.get('storage_path')
            if path is not None and not self._validate_string(path, min_len=1, max_len=4096):
                raise ValidationError(
                    message="存储路径必须是非空字符串",
                    field="storage_path",
                    value=path,
                    reason="invalid_path"
                )

            # 验证分页大小
            if 'rebuild_batch_size' in config:
                batch_size = config['rebuild_batch_size']
                if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
                    raise ValidationError(
                        message="重建分页大小必须是正整数",
                        field="rebuild_batch_size",
                        value=batch_size,
                        reason="invalid_batch_size"
                    )

            # 验证子节点插入位置
            if 'child_placement' in config and config['child_placement'] not in VALID_CHILD_PLACEMENTS:
                raise ValidationError(
                    message=f"无效的子节点插入位置: {config['child_placement']}",
                    field="child_placement",
                    value=config['child_placement'],
                    reason=f"必须是 {VALID_CHILD_PLACEMENTS} 之一"
                )

            if 'selectable_separator' in config and not isinstance(config['selectable_separator'], str):
                raise ValidationError(
                    message="缩进符必须是字符串",
                    field="selectable_separator",
                    value=config['selectable_separator'],
                    reason="invalid_type"
                )

            return True

        except ValidationError:
            raise
        except (TypeError, AttributeError) as e:
            raise ConfigError(f"配置验证失败: {str(e)}")

    def validate_label(self, label: Any) -> str:
        """验证节点名称，名称原样保留"""
        if label is None:
            return ""

        if not isinstance(label, str):
            raise ValidationError(
                message="节点名称必须是字符串",
                field="label",
                value=label,
                reason="invalid_type"
            )

        if len(label) > self._max_label_length:
            raise ValidationError(
                message=f"节点名称不能超过{self._max_label_length}个字符",
                field="label",
                value=label,
                reason="invalid_length"
            )

        return label

    def validate_node_id(self, node_id: Any, field: str = "node_id",
                         allow_none: bool = False) -> Optional[int]:
        """验证节点ID"""
        if node_id is None and allow_none:
            return None

        if isinstance(node_id, bool) or not isinstance(node_id, int) or node_id < 1:
            raise ValidationError(
                message="节点ID必须是正整数",
                field=field,
                value=node_id,
                reason="invalid_id"
            )
        return node_id

    def _validate_string(self, value: str, min_len: int = 1, max_len: int = 100) -> bool:
        """验证字符串"""
        return isinstance(value, str) and min_len <= len(value) <= max_len
