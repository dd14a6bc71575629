"""
节点存储接口
抽象嵌套集合算法所依赖的持久化层：读取、过滤、计数、按谓词批量更新、事务边界
"""
from abc import ABC, abstractmethod
from enum import Enum
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from ..core.node.entity import Column, Node

T = TypeVar('T')


class Operator(str, Enum):
    """谓词比较运算符"""

    EQ = "="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    BETWEEN = "BETWEEN"
    IS_NULL = "IS NULL"
    NOT_IN = "NOT IN"


@dataclass(frozen=True)
class Condition:
    """单列条件"""

    column: Column
    operator: Operator
    value: Any = None

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = row[self.column.value]
        op = self.operator

        if op is Operator.IS_NULL:
            return current is None
        if op is Operator.NOT_IN:
            return current not in self.value
        if current is None:
            # 与 SQL 一致: NULL 参与比较结果为假
            return False
        if op is Operator.EQ:
            return current == self.value
        if op is Operator.NE:
            return current != self.value
        if op is Operator.GT:
            return current > self.value
        if op is Operator.GE:
            return current >= self.value
        if op is Operator.LT:
            return current < self.value
        if op is Operator.LE:
            return current <= self.value
        if op is Operator.BETWEEN:
            low, high = self.value
            return low <= current <= high
        raise ValueError(f"不支持的运算符: {op}")


@dataclass(frozen=True)
class Predicate:
    """
    条件的合取（AND）

    空谓词匹配所有行。谓词只携带列和值，由各存储实现转换为
    参数化查询或内存过滤，从不拼接可执行文本。
    """

    conditions: Tuple[Condition, ...] = ()

    def __and__(self, other: 'Predicate') -> 'Predicate':
        return Predicate(self.conditions + other.conditions)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(condition.matches(row) for condition in self.conditions)

    @classmethod
    def all(cls) -> 'Predicate':
        return cls()

    @classmethod
    def eq(cls, column: Column, value: Any) -> 'Predicate':
        if value is None:
            return cls((Condition(column, Operator.IS_NULL),))
        return cls((Condition(column, Operator.EQ, value),))

    @classmethod
    def gt(cls, column: Column, value: int) -> 'Predicate':
        return cls((Condition(column, Operator.GT, value),))

    @classmethod
    def between(cls, column: Column, low: int, high: int) -> 'Predicate':
        return cls((Condition(column, Operator.BETWEEN, (low, high)),))

    @classmethod
    def not_in(cls, column: Column, values: Iterable[Any]) -> 'Predicate':
        return cls((Condition(column, Operator.NOT_IN, tuple(values)),))


@dataclass(frozen=True)
class Shift:
    """数值列增量更新: column = column + delta"""

    delta: int

    def apply(self, current: Any) -> Any:
        return current + self.delta


@dataclass(frozen=True)
class SetValue:
    """赋值更新: column = value"""

    value: Any

    def apply(self, current: Any) -> Any:
        return self.value


Change = Union[Shift, SetValue]


class INodeStore(ABC):
    """节点存储接口 - 嵌套集合算法的外部协作者"""

    @abstractmethod
    def find_by_id(self, node_id: int) -> Optional[Node]:
        """
        根据ID查找节点

        Args:
            node_id: 节点ID

        Returns:
            节点，如果不存在返回None
        """
        pass

    @abstractmethod
    def find_all(self) -> List[Node]:
        """
        获取所有节点，按 lft 升序（相同 lft 按 id 升序）

        Returns:
            节点列表
        """
        pass

    @abstractmethod
    def find_by_parent(self, parent_id: Optional[int],
                       limit: Optional[int] = None, offset: int = 0) -> List[Node]:
        """
        分页获取某父节点下的子节点，按 id 升序

        Args:
            parent_id: 父节点ID，None表示根节点
            limit: 每页条数，None表示不限制
            offset: 偏移量

        Returns:
            节点列表
        """
        pass

    @abstractmethod
    def find_root_max_rght(self) -> Optional[int]:
        """
        获取根节点中最大的 rght 值

        Returns:
            最大 rght，没有根节点时返回None
        """
        pass

    @abstractmethod
    def find_first_child(self, parent_id: int) -> Optional[Node]:
        """
        获取父节点下 lft 最小的子节点

        Args:
            parent_id: 父节点ID

        Returns:
            节点，没有子节点时返回None
        """
        pass

    @abstractmethod
    def find_by_rght(self, value: int) -> Optional[Node]:
        """获取 rght 等于给定值的节点（左侧相邻节点）"""
        pass

    @abstractmethod
    def find_by_lft(self, value: int) -> Optional[Node]:
        """获取 lft 等于给定值的节点（右侧相邻节点）"""
        pass

    @abstractmethod
    def find_ids(self, predicate: Predicate) -> List[int]:
        """
        获取满足谓词的节点ID

        Args:
            predicate: 过滤条件

        Returns:
            ID列表
        """
        pass

    @abstractmethod
    def count(self, predicate: Optional[Predicate] = None) -> int:
        """
        统计节点数

        Args:
            predicate: 过滤条件，None表示全部

        Returns:
            节点数
        """
        pass

    @abstractmethod
    def insert(self, parent_id: Optional[int], lft: int, rght: int, label: str = "") -> Node:
        """
        插入新节点，ID由存储分配（单调递增）

        Args:
            parent_id: 父节点ID
            lft: 左值
            rght: 右值
            label: 显示名称

        Returns:
            带有新ID的节点
        """
        pass

    @abstractmethod
    def bulk_update(self, changes: Mapping[Column, Change], predicate: Predicate) -> int:
        """
        按谓词批量更新

        同一语句中的多个列变更基于更新前的行值计算，谓词也基于更新前的值求值。

        Args:
            changes: 列到变更的映射
            predicate: 过滤条件

        Returns:
            受影响的行数
        """
        pass

    @abstractmethod
    def delete_where(self, predicate: Predicate) -> int:
        """
        按谓词删除

        Args:
            predicate: 过滤条件

        Returns:
            删除的行数
        """
        pass

    @abstractmethod
    def run_in_transaction(self, operation: Callable[[], T]) -> T:
        """
        在原子事务中执行操作，失败时回滚并重新抛出异常

        嵌套调用并入外层事务。

        Args:
            operation: 无参可调用对象

        Returns:
            操作的返回值
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """清空所有数据"""
        pass

    def close(self) -> None:
        """释放资源"""
        pass
