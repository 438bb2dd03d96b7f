"""
好友模块API路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.deps import get_login_uid
from core.errors import success_response

from .user_services import UserService

router = APIRouter()


@router.get("/friend/sync", response_model=dict, summary="同步好友")
async def sync_friends(
    db: AsyncSession = Depends(get_db),
    login_uid: str = Depends(get_login_uid)
):
    """获取当前用户的好友列表（含单向好友）"""
    friends = await UserService(db).get_friends(login_uid)
    return success_response(data=[f.model_dump() for f in friends])
