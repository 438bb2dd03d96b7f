"""
路由目录
"""

from . import datasource, health

__all__ = ["datasource", "health"]
