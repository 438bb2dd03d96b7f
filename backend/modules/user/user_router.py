"""
用户模块API路由
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.deps import get_login_uid
from core.errors import NotFoundException, success_response

from .user_schemas import DeviceResponse
from .user_services import UserService, DeviceRepository

logger = logging.getLogger(__name__)

# 路由器（不设置 prefix，由注册表挂载时添加）
router = APIRouter()


@router.get("/users/{uid}", response_model=dict, summary="获取用户详情")
async def get_user_detail(
    uid: str,
    db: AsyncSession = Depends(get_db),
    login_uid: str = Depends(get_login_uid)
):
    """以当前登录用户视角获取用户详情"""
    detail = await UserService(db).get_user_detail(uid, login_uid)
    if detail is None:
        raise NotFoundException("用户", uid)
    return success_response(data=detail.model_dump())


@router.get("/users/{uid}/devices", response_model=dict, summary="获取用户设备")
async def get_user_devices(
    uid: str,
    db: AsyncSession = Depends(get_db),
    login_uid: str = Depends(get_login_uid)
):
    """只能查看自己的设备"""
    if uid != login_uid:
        raise NotFoundException("用户", uid)
    devices = await DeviceRepository(db).query_devices_by_uid(uid)
    return success_response(data=[DeviceResponse.model_validate(d).model_dump(mode="json") for d in devices])
