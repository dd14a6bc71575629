"""
表格导入器
从 CSV / Excel 文件或 DataFrame 导入层级数据

支持两种格式：
1. 邻接表：每行有 id 列和 parent_id 列
2. 缩进大纲：只有名称列，按前导空格数确定层级（默认每2个空格一级）

导入时先按父节点优先的顺序插入占位区间，再只为新导入的树编号，接在已有森林之后，全部在一个事务中完成。
"""
import os
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime
from pathlib import Path

import pandas as pd

from .base_importer import DataImporter
from ...exceptions import DataImportError, ValidationError
from ...config.validator import ConfigValidator
from ...interfaces.inode_store import INodeStore
from ...core.interval.rebuilder import TreeRebuilder, DEFAULT_BATCH_SIZE

logger = logging.getLogger(__name__)

CSV_SUFFIXES = ['.csv']
EXCEL_SUFFIXES = ['.xlsx', '.xls', '.xlsm']


class TableImporter(DataImporter):
    """
    表格导入器

    配置项：
        label_column: 名称列（默认 label）
        id_column: 邻接表的键列（默认 id）
        parent_column: 邻接表的父键列（默认 parent_id）
        indent_width: 大纲格式每级的空格数（默认 2）
        sheet_name: Excel 工作表（默认第一个）
        batch_size: 重建分页大小
        max_label_length: 名称最大长度（默认 255）
    """

    def __init__(self, store: INodeStore, config: Dict[str, Any] = None):
        super().__init__(config)
        self.store = store
        self.label_column = self.config.get('label_column', 'label')
        self.id_column = self.config.get('id_column', 'id')
        self.parent_column = self.config.get('parent_column', 'parent_id')
        self.indent_width = self.config.get('indent_width', 2)
        self.sheet_name = self.config.get('sheet_name', 0)
        self.rebuilder = TreeRebuilder(store, batch_size=self.config.get('batch_size', DEFAULT_BATCH_SIZE))
        self.validator = ConfigValidator(max_label_length=self.config.get('max_label_length', 255))

        # 统计信息
        self.stats = {
            'sources_processed': 0,
            'records_parsed': 0,
            'nodes_created': 0
        }

    def _validate_config(self):
        indent_width = self.config.get('indent_width', 2)
        if isinstance(indent_width, bool) or not isinstance(indent_width, int) or indent_width < 1:
            raise DataImportError(f"缩进宽度必须是正整数: {indent_width}")

    # ============ 抽象方法实现 ============

    def validate_source(self, source: Any) -> bool:
        """验证数据源"""
        if isinstance(source, pd.DataFrame):
            return True

        if not os.path.exists(str(source)):
            return False

        ext = Path(str(source)).suffix.lower()
        return ext in CSV_SUFFIXES + EXCEL_SUFFIXES

    def extract_metadata(self, source: Any) -> Dict[str, Any]:
        """提取数据源元数据"""
        metadata = {
            'import_time': datetime.now().isoformat(),
            'config': self.config
        }

        if isinstance(source, pd.DataFrame):
            metadata.update({'source': 'dataframe', 'rows': len(source)})
            return metadata

        metadata.update({'source': str(source), 'file_name': Path(str(source)).name})
        if os.path.exists(str(source)):
            file_stat = os.stat(str(source))
            metadata.update({
                'file_size': file_stat.st_size,
                'modified_time': datetime.fromtimestamp(file_stat.st_mtime).isoformat()
            })

        return metadata

    def parse_data(self, source: Any) -> pd.DataFrame:
        """读取表格数据"""
        if isinstance(source, pd.DataFrame):
            return source.copy()

        if not self.validate_source(source):
            raise DataImportError(f"无效的文件: {source}", source=str(source))

        ext = Path(str(source)).suffix.lower()
        try:
            if ext in CSV_SUFFIXES:
                # 保留名称前导空格，大纲格式依赖它
                return pd.read_csv(source, skipinitialspace=False)
            return pd.read_excel(source, sheet_name=self.sheet_name)
        except (OSError, ValueError) as e:
            raise DataImportError(f"读取文件失败: {str(e)}", source=str(source))

    def convert_to_records(self, data: pd.DataFrame) -> List[Dict[str, Any]]:
        """转换为节点记录，自动识别邻接表或缩进大纲"""
        if self.label_column not in data.columns:
            raise DataImportError(f"未找到名称列: {self.label_column}")

        if self.id_column in data.columns and self.parent_column in data.columns:
            records = self._adjacency_records(data)
        else:
            records = self._outline_records(data)

        self.stats['records_parsed'] += len(records)
        return records

    # ============ 写入存储 ============

    def load(self, source: Any) -> Dict[Any, int]:
        """
        导入数据源并写入存储

        Returns:
            源数据键到新节点ID的映射
        """
        records = self.import_data(source)
        key_to_id = self.store.run_in_transaction(lambda: self._insert_records(records))

        self.stats['sources_processed'] += 1
        self.stats['nodes_created'] += len(key_to_id)
        logger.info(f"导入完成: {len(key_to_id)} 个节点")
        return key_to_id

    def _insert_records(self, records: List[Dict[str, Any]]) -> Dict[Any, int]:
        key_to_id: Dict[Any, int] = {}
        root_ids: List[int] = []
        counter = self._next_counter()
        pending = list(records)

        # 父节点优先；区间先占位，插入完成后只为新树编号
        while pending:
            remaining = []
            for record in pending:
                parent_key = record['parent_key']
                if parent_key is not None and parent_key not in key_to_id:
                    remaining.append(record)
                    continue
                parent_id = key_to_id[parent_key] if parent_key is not None else None
                node = self.store.insert(parent_id, 0, 0, record['label'])
                key_to_id[record['key']] = node.id
                if parent_id is None:
                    root_ids.append(node.id)

            if len(remaining) == len(pending):
                missing = sorted(str(record['key']) for record in remaining)
                raise DataImportError(
                    f"{len(remaining)} 条记录的父节点不存在或存在循环: {', '.join(missing[:10])}"
                )
            pending = remaining

        # 导入的记录只挂在导入的记录下，新行全部构成新树，追加到已有森林之后
        start = counter
        for root_id in sorted(root_ids):
            counter = self.rebuilder.rebuild(counter, root_id)

        numbered = (counter - start) // 2
        if numbered != len(key_to_id):
            raise DataImportError(f"{len(key_to_id) - numbered} 个导入节点无法从新根节点到达")

        return key_to_id

    def _next_counter(self) -> int:
        """已有森林之后的第一个可用编号"""
        max_rght = self.store.find_root_max_rght()
        if max_rght is None:
            max_rght = max((node.rght for node in self.store.find_all()), default=0)
        return max_rght + 1

    # ============ 工具方法 ============

    def _adjacency_records(self, data: pd.DataFrame) -> List[Dict[str, Any]]:
        records = []
        seen = set()

        for idx, row in data.iterrows():
            key = self._normalize_key(row[self.id_column])
            if key is None:
                raise DataImportError(f"第 {idx} 行缺少 {self.id_column}")
            if key in seen:
                raise DataImportError(f"重复的键: {key}")
            seen.add(key)

            records.append({
                'key': key,
                'parent_key': self._normalize_key(row[self.parent_column]),
                'label': self._clean_label(row[self.label_column], idx)
            })

        return records

    def _outline_records(self, data: pd.DataFrame) -> List[Dict[str, Any]]:
        records = []
        hierarchy = []  # (level, key)

        for idx, row in data.iterrows():
            raw_name = row[self.label_column]
            if pd.isna(raw_name) or not str(raw_name).strip():
                continue

            raw_name = str(raw_name)
            level = self._parse_level(raw_name)

            parent_key = None
            for prev_level, prev_key in reversed(hierarchy):
                if prev_level < level:
                    parent_key = prev_key
                    break

            hierarchy = [(l, k) for l, k in hierarchy if l < level]
            hierarchy.append((level, idx))

            # 只去掉表示层级的前导空格，名称其余部分原样保留
            label = self._clean_label(raw_name.lstrip(' '), idx)
            records.append({'key': idx, 'parent_key': parent_key, 'label': label})

        return records

    def _parse_level(self, raw_name: str) -> int:
        """按前导空格解析层级"""
        leading_spaces = len(raw_name) - len(raw_name.lstrip(' '))
        return leading_spaces // self.indent_width

    @staticmethod
    def _normalize_key(value: Any) -> Optional[Any]:
        if value is None or pd.isna(value):
            return None
        # CSV 中含空值的整数列会被读成浮点数
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if hasattr(value, 'item'):
            return value.item()
        return value

    def _clean_label(self, value: Any, row: Any) -> str:
        if value is None or pd.isna(value):
            return ""
        try:
            return self.validator.validate_label(str(value))
        except ValidationError as e:
            raise DataImportError(f"第 {row} 行名称无效: {e.message}")
