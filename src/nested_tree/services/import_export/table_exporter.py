"""
表格导出器
把树快照导出为 DataFrame / CSV / Excel
"""
import logging
from pathlib import Path
from typing import Union

import pandas as pd

from ...exceptions import DataStoreError
from ...core.query.snapshot import TreeSnapshot

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ['id', 'parent_id', 'lft', 'rght', 'depth', 'label']


class TableExporter:
    """表格导出器"""

    def __init__(self, indent_width: int = 2):
        self.indent_width = indent_width

    def to_dataframe(self, snapshot: TreeSnapshot) -> pd.DataFrame:
        """按 lft 顺序导出邻接表，附带深度"""
        depths = snapshot.depths()
        rows = [
            {**node.to_row(), 'depth': depths[node.id]}
            for node in snapshot
        ]

        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        df['parent_id'] = df['parent_id'].astype('Int64')
        return df

    def to_outline(self, snapshot: TreeSnapshot) -> pd.DataFrame:
        """
        导出为缩进大纲，可被 TableImporter 读回

        空名称或以空白开头的名称无法与缩进区分，遇到时拒绝导出，应改用邻接表格式。
        """
        depths = snapshot.depths()
        for node in snapshot:
            if not node.label or node.label[0].isspace():
                raise DataStoreError(
                    f"节点 {node.id} 的名称无法用缩进大纲表示: {node.label!r}，请改用邻接表导出",
                    operation="export"
                )

        labels = [' ' * (self.indent_width * depths[node.id]) + node.label for node in snapshot]
        return pd.DataFrame({'label': labels})

    def export(self, snapshot: TreeSnapshot, file_path: Union[str, Path], outline: bool = False) -> Path:
        """
        导出到文件，格式由扩展名决定（.csv / .xlsx）

        Returns:
            文件路径
        """
        path = Path(file_path)
        df = self.to_outline(snapshot) if outline else self.to_dataframe(snapshot)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            suffix = path.suffix.lower()
            if suffix == '.csv':
                df.to_csv(path, index=False)
            elif suffix in ['.xlsx', '.xlsm']:
                df.to_excel(path, index=False)
            else:
                raise DataStoreError(f"不支持的导出格式: {suffix}", operation="export")
        except OSError as e:
            raise DataStoreError(f"导出失败: {str(e)}", operation="export")

        logger.info(f"导出完成: {len(df)} 行 -> {path}")
        return path
