"""
用户模块服务层
用户、好友与设备数据的查询
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from .user_models import IMUser, IMUserSetting, IMFriend, IMDevice, IMUserOnline
from .user_schemas import UserDetail, FriendItem, UserCreate
from .user_names import NicknamePool

logger = logging.getLogger(__name__)


class UserService:
    """用户服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== 用户 ====================

    async def get_user(self, uid: str) -> Optional[IMUser]:
        result = await self.db.execute(select(IMUser).where(IMUser.uid == uid))
        return result.scalar_one_or_none()

    async def get_users_with_categories(self, categories: Iterable[str]) -> List[IMUser]:
        """按分类查询用户"""
        categories = list(categories)
        if not categories:
            return []
        result = await self.db.execute(
            select(IMUser).where(IMUser.category.in_(categories)).order_by(IMUser.id)
        )
        return list(result.scalars().all())

    async def list_users(self, category: Optional[str] = None) -> List[IMUser]:
        query = select(IMUser).order_by(IMUser.id)
        if category is not None:
            query = query.where(IMUser.category == category)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_user(self, data: UserCreate, nicknames: Optional[NicknamePool] = None) -> IMUser:
        """创建用户，未提供昵称时从词库随机抽取"""
        name = data.name
        if not name and nicknames is not None:
            name = nicknames.random_name()

        user = IMUser(
            uid=data.uid,
            name=name or data.uid,
            username=data.username,
            category=data.category,
            sex=data.sex,
            robot=data.robot,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"创建用户: {user.uid} ({user.category or '普通用户'})")
        return user

    # ==================== 用户详情 ====================

    async def _get_setting(self, uid: str, to_uid: str) -> Optional[IMUserSetting]:
        if not uid:
            return None
        result = await self.db.execute(
            select(IMUserSetting).where(IMUserSetting.uid == uid, IMUserSetting.to_uid == to_uid)
        )
        return result.scalar_one_or_none()

    async def _get_friend(self, uid: str, to_uid: str) -> Optional[IMFriend]:
        if not uid:
            return None
        result = await self.db.execute(
            select(IMFriend).where(IMFriend.uid == uid, IMFriend.to_uid == to_uid)
        )
        return result.scalar_one_or_none()

    async def _get_online(self, uid: str) -> Optional[IMUserOnline]:
        # 任一设备在线即在线，否则取最近离线的设备
        result = await self.db.execute(
            select(IMUserOnline)
            .where(IMUserOnline.uid == uid)
            .order_by(desc(IMUserOnline.online), desc(IMUserOnline.last_offline))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_user_detail(self, uid: str, login_uid: str) -> Optional[UserDetail]:
        """
        获取用户详情

        Args:
            uid: 目标用户
            login_uid: 当前登录用户，决定会话设置与好友关系

        Returns:
            用户不存在时返回 None
        """
        user = await self.get_user(uid)
        if user is None:
            return None

        detail = UserDetail(
            uid=user.uid,
            name=user.name,
            username=user.username,
            sex=user.sex,
            category=user.category,
            short_no=user.short_no,
            robot=user.robot,
            status=user.status,
            receipt=user.receipt,
        )

        setting = await self._get_setting(login_uid, uid)
        if setting is not None:
            detail.mute = setting.mute
            detail.top = setting.top
            detail.receipt = setting.receipt
            detail.chat_pwd_on = setting.chat_pwd_on
            detail.screenshot = setting.screenshot
            detail.revoke_remind = setting.revoke_remind
            detail.flame = setting.flame
            detail.flame_second = setting.flame_second

        reverse_setting = await self._get_setting(uid, login_uid)
        if reverse_setting is not None and reverse_setting.blacklist == 1:
            detail.be_blacklist = 1

        friend = await self._get_friend(login_uid, uid)
        if friend is not None and friend.is_deleted == 0:
            detail.follow = 1
            detail.remark = friend.remark
            detail.source_desc = friend.source_desc
            detail.vercode = friend.vercode

        reverse_friend = await self._get_friend(uid, login_uid)
        if reverse_friend is not None and reverse_friend.is_deleted == 1:
            detail.be_deleted = 1

        online = await self._get_online(uid)
        if online is not None:
            detail.online = online.online
            detail.last_offline = online.last_offline
            detail.device_flag = online.device_flag

        return detail

    # ==================== 好友 ====================

    async def get_friends(self, uid: str) -> List[FriendItem]:
        """获取用户的全部好友（含单向好友，不含已删除）"""
        result = await self.db.execute(
            select(IMFriend)
            .where(IMFriend.uid == uid, IMFriend.is_deleted == 0)
            .order_by(IMFriend.id)
        )
        return [
            FriendItem(uid=f.to_uid, remark=f.remark, is_alone=f.is_alone)
            for f in result.scalars().all()
        ]


class DeviceRepository:
    """设备数据访问"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def query_devices_by_ids(self, ids: List[int]) -> List[IMDevice]:
        """按ID批量查询设备，不存在的ID直接忽略"""
        if not ids:
            return []
        result = await self.db.execute(select(IMDevice).where(IMDevice.id.in_(ids)))
        return list(result.scalars().all())

    async def query_devices_by_uid(self, uid: str) -> List[IMDevice]:
        result = await self.db.execute(
            select(IMDevice).where(IMDevice.uid == uid).order_by(desc(IMDevice.last_login))
        )
        return list(result.scalars().all())
