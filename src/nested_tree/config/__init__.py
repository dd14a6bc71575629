"""
配置模块
"""

from .settings import TreeSettings
from .validator import ConfigValidator

__all__ = ['TreeSettings', 'ConfigValidator']
