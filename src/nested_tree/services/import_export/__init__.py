"""
表格导入导出
"""

from .base_importer import DataImporter
from .table_importer import TableImporter
from .table_exporter import TableExporter

__all__ = ['DataImporter', 'TableImporter', 'TableExporter']
