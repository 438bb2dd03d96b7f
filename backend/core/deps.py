"""
依赖注入
提供全局可复用的依赖项
"""

from typing import Optional
from fastapi import Header

from .database import get_db
from .errors import RegistryNotSealedException, ValidationException
from .registry import ModuleRegistry, get_module_registry


# 重新导出常用依赖
__all__ = [
    "get_db",
    "get_registry",
    "get_login_uid",
]


def get_registry() -> ModuleRegistry:
    """获取已封存的模块注册表"""
    registry = get_module_registry()
    if registry is None or not registry.sealed:
        raise RegistryNotSealedException()
    return registry


async def get_login_uid(x_login_uid: Optional[str] = Header(None)) -> str:
    """读取网关注入的当前登录用户UID"""
    if not x_login_uid:
        raise ValidationException("缺少登录用户", errors=[{"field": "X-Login-UID", "message": "必填"}])
    return x_login_uid
