"""
嵌套集合树基本使用示例
"""
import sys
import os

# 添加src到路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree import NestedTreeSystem, TreeOperation
from nested_tree.core.interval import RemoveMode


def main():
    """主函数"""
    print("=" * 60)
    print("嵌套集合树 - 基本使用示例")
    print("=" * 60)

    # 1. 创建系统实例
    print("\n1. 初始化系统...")
    system = NestedTreeSystem({
        "system_name": "组织机构树",
        "log_level": "INFO",
        "storage_backend": "memory",
        "verify_after_write": True
    })

    info = system.get_system_info()
    print(f"   系统名称: {info['system_name']}")
    print(f"   系统版本: {info['version']}")

    # 2. 构建树结构
    print("\n2. 构建树结构...")
    head = system.add_node("总部")
    east = system.add_node("华东", head.id)
    system.add_node("上海", east.id)
    system.add_node("杭州", east.id)
    south = system.add_node("华南", head.id)
    system.add_node("广州", south.id)
    branch = system.add_node("海外")

    for node_id, label in system.selectables(separator="  ").items():
        node = system.get_node(node_id)
        print(f"   {label:<10} ({node.lft}, {node.rght})")

    # 3. 查询
    print("\n3. 查询...")
    print(f"   总部的直接下级: {[n.label for n in system.children(head.id)]}")
    print(f"   总部的后代数: {system.descendant_count(head.id)}")
    guangzhou = system.children(south.id)[0]
    print(f"   广州的路径: {' / '.join(n.label for n in system.path(guangzhou.id))}")

    # 4. 调整顺序
    print("\n4. 调整兄弟顺序...")
    system.move_left(south.id)
    print(f"   调整后: {[n.label for n in system.children(head.id)]}")

    # 5. 修改父节点
    print("\n5. 把华南划归海外...")
    system.set_parent(south.id, branch.id)
    print(f"   海外的直接下级: {[n.label for n in system.children(branch.id)]}")

    # 6. 删除
    print("\n6. 删除华东（下级上移一级）...")
    removed = system.execute(TreeOperation.REMOVE_NODE, east.id, RemoveMode.PROMOTE)
    print(f"   删除 {removed} 个节点")
    print(f"   总部的直接下级: {[n.label for n in system.children(head.id)]}")

    # 7. 统计与检查
    print("\n7. 统计与健康检查...")
    print(f"   统计: {system.get_stats()}")
    print(f"   状态: {system.health_check()['status']}")

    print("\n" + "=" * 60)
    print("示例完成")
    print("=" * 60)


if __name__ == "__main__":
    main()
