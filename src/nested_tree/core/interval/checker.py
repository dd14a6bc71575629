# -*- coding: utf-8 -*-
"""
区间一致性检查
"""
from collections import Counter
from typing import List

from ...exceptions import TreeError, IntervalCorruptionError, ReferentialIntegrityError
from ..query.snapshot import TreeSnapshot


class IntervalChecker:
    """
    区间一致性检查器

    检查项：
    1. rght > lft，且 (rght - lft - 1) 为偶数
    2. 所有 lft/rght 编号互不相同
    3. 任意两个区间要么不相交要么严格嵌套
    4. parent_id 指向最紧的包含节点（根节点不被任何节点包含）
    """

    def find_problems(self, snapshot: TreeSnapshot) -> List[TreeError]:
        """返回发现的所有问题（不抛出）"""
        problems: List[TreeError] = []

        for node in snapshot:
            if node.rght <= node.lft:
                problems.append(IntervalCorruptionError(
                    "rght 必须大于 lft", node_id=node.id, lft=node.lft, rght=node.rght
                ))
            elif (node.rght - node.lft - 1) % 2 != 0:
                problems.append(IntervalCorruptionError(
                    "后代数不是整数", node_id=node.id, lft=node.lft, rght=node.rght
                ))

        endpoints = Counter()
        for node in snapshot:
            endpoints[node.lft] += 1
            endpoints[node.rght] += 1
        duplicated = sorted(value for value, seen in endpoints.items() if seen > 1)
        if duplicated:
            problems.append(IntervalCorruptionError(f"区间编号重复: {duplicated[:10]}"))

        stack = []
        for node in snapshot:
            while stack and stack[-1].rght < node.lft:
                stack.pop()

            if stack and node.rght > stack[-1].rght:
                container = stack[-1]
                problems.append(IntervalCorruptionError(
                    f"与节点 {container.id} ({container.lft}, {container.rght}) 部分重叠",
                    node_id=node.id, lft=node.lft, rght=node.rght
                ))

            expected_parent = stack[-1].id if stack else None
            if node.parent_id != expected_parent:
                if node.parent_id is not None and node.parent_id not in snapshot:
                    problems.append(ReferentialIntegrityError(
                        reason=f"父节点不存在: {node.parent_id}",
                        node_id=node.id, parent_id=node.parent_id
                    ))
                else:
                    problems.append(IntervalCorruptionError(
                        f"parent_id={node.parent_id} 不是最紧的包含节点 (应为 {expected_parent})",
                        node_id=node.id, lft=node.lft, rght=node.rght
                    ))

            stack.append(node)

        return problems

    def check(self, snapshot: TreeSnapshot) -> None:
        """
        检查快照，发现问题时抛出第一个

        Raises:
            IntervalCorruptionError: 区间损坏
            ReferentialIntegrityError: 父节点缺失
        """
        problems = self.find_problems(snapshot)
        if problems:
            raise problems[0]

    def is_valid(self, snapshot: TreeSnapshot) -> bool:
        return not self.find_problems(snapshot)
