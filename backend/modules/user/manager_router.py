"""
用户管理API路由
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import BusinessException, ErrorCode, success_response

from .user_schemas import UserCreate, UserResponse
from .user_services import UserService
from .user_names import get_nickname_pool

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/manager/users", response_model=dict, summary="用户列表")
async def list_users(
    category: Optional[str] = Query(None, description="用户分类"),
    db: AsyncSession = Depends(get_db)
):
    users = await UserService(db).list_users(category)
    return success_response(data=[UserResponse.model_validate(u).model_dump(mode="json") for u in users])


@router.post("/manager/users", response_model=dict, summary="创建用户")
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """创建用户（可用于添加客服、系统账号）"""
    service = UserService(db)
    if await service.get_user(data.uid) is not None:
        raise BusinessException(code=ErrorCode.OPERATION_FAILED, message=f"用户已存在: {data.uid}")
    user = await service.create_user(data, get_nickname_pool())
    return success_response(data=UserResponse.model_validate(user).model_dump(mode="json"), message="创建成功")


@router.get("/manager/nickname", response_model=dict, summary="随机昵称")
async def random_nickname():
    pool = get_nickname_pool()
    if pool is None:
        raise BusinessException(message="昵称词库未加载")
    return success_response(data={"name": pool.random_name()})
