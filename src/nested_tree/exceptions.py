"""
嵌套集合树异常体系
"""
from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """所有异常的基类"""
    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.context = context or {}
        self.timestamp = datetime.now()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，便于序列化"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


# ==================== 配置和验证异常 ====================
class ConfigError(BaseError):
    """配置错误"""
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details, **kwargs)


class ValidationError(BaseError):
    """数据验证错误"""
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        details = {
            "field": field,
            "value": value,
            "reason": reason
        }
        super().__init__(message, code="VALIDATION_ERROR", details=details, **kwargs)


# ==================== 树结构相关异常 ====================
class TreeError(BaseError):
    """树结构错误基类"""
    pass


class NodeError(TreeError):
    """节点操作错误"""
    pass


class NodeNotFoundError(NodeError):
    """节点不存在"""
    def __init__(self, node_id: Optional[int] = None, **kwargs):
        details = {"node_id": node_id} if node_id is not None else {}
        message = "节点不存在"
        if node_id is not None:
            message += f": id={node_id}"
        super().__init__(message, code="NODE_NOT_FOUND", details=details, **kwargs)


class ReferentialIntegrityError(TreeError):
    """父子引用不完整（父节点缺失、孤立节点、循环引用）"""
    def __init__(
        self,
        reason: str,
        node_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        **kwargs
    ):
        details = {"node_id": node_id, "parent_id": parent_id, "reason": reason}
        super().__init__(
            message=f"引用完整性错误: {reason}",
            code="REFERENTIAL_INTEGRITY_ERROR",
            details=details,
            **kwargs
        )


class IntervalCorruptionError(TreeError):
    """左右值区间损坏"""
    def __init__(
        self,
        reason: str,
        node_id: Optional[int] = None,
        lft: Optional[int] = None,
        rght: Optional[int] = None,
        **kwargs
    ):
        details = {"node_id": node_id, "lft": lft, "rght": rght, "reason": reason}
        message = f"区间损坏: {reason}"
        if node_id is not None:
            message += f" (id={node_id}, lft={lft}, rght={rght})"
        super().__init__(
            message=message,
            code="INTERVAL_CORRUPTION",
            details=details,
            **kwargs
        )


# ==================== 存储相关异常 ====================
class StorageError(BaseError):
    """存储错误"""
    pass


class DataStoreError(StorageError):
    """数据存储异常"""
    def __init__(self, message: str, operation: str = None, store_type: str = None, **kwargs):
        details = {"operation": operation, "store_type": store_type}
        super().__init__(
            message=f"存储错误[{operation or 'unknown'}]: {message}",
            code="DATA_STORE_ERROR",
            details=details,
            **kwargs
        )


# ==================== 导入导出异常 ====================
class DataImportError(BaseError):
    """导入过程异常"""
    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="DATA_IMPORT_ERROR",
            details={"source": source},
            **kwargs
        )
