"""
用户模块清单
注册三个业务模块：user（用户）、friend（好友）、user_manager（用户管理）

数据源能力均为闭包，每次调用都打开新的数据库会话读取最新数据
"""

import logging
from pathlib import Path
from typing import List

from core.datasource import (
    BusinessDataSource,
    ChannelType,
    IdentitySource,
    IMDatasourceType,
    NOT_APPLICABLE,
    upstream_guard,
)
from core.errors import DataIntegrityException
from core.loader import ModuleContext
from core.registry import ModuleDescriptor, ModuleRegistry, SQLAssets
from schemas.datasource import DeviceDescriptor, FriendDescriptor

from . import user_router, friend_router, manager_router
from .user_channel import new_channel_resp_with_user_detail
from .user_models import Category
from .user_names import init_nickname_pool
from .user_schemas import FriendItem
from .user_services import UserService, DeviceRepository

logger = logging.getLogger(__name__)

MODULE_PATH = Path(__file__).parent

# 视为系统账号的用户分类
SYSTEM_CATEGORIES = (Category.CUSTOMER_SERVICE, Category.SYSTEM)


def _read_document(name: str) -> str:
    return (MODULE_PATH / "swagger" / name).read_text(encoding="utf-8")


# ==================== 用户 ====================

def build_user_module(ctx: ModuleContext) -> ModuleDescriptor:
    """用户模块：系统账号、个人频道、设备"""
    session_factory = ctx.session_factory
    bus = ctx.event_bus
    avatar_template = ctx.settings.avatar_path_template

    async def system_uids() -> List[str]:
        async with upstream_guard("user.system_uids", bus):
            async with session_factory() as db:
                users = await UserService(db).get_users_with_categories(SYSTEM_CATEGORIES)
        return [user.uid for user in users]

    async def channel_get(channel_id: str, channel_type: int, login_uid: str):
        if channel_type != ChannelType.PERSON:
            return NOT_APPLICABLE

        async with upstream_guard("user.channel_get", bus):
            async with session_factory() as db:
                detail = await UserService(db).get_user_detail(channel_id, login_uid)

        if detail is None:
            logger.error(f"用户不存在！channel_id={channel_id}")
            raise DataIntegrityException("用户不存在！", data={"channel_id": channel_id})
        return new_channel_resp_with_user_detail(detail, avatar_template)

    async def get_devices(ids: List[int]) -> List[DeviceDescriptor]:
        if not ids:
            return []

        async with upstream_guard("user.get_devices", bus):
            async with session_factory() as db:
                devices = await DeviceRepository(db).query_devices_by_ids(ids)

        return [
            DeviceDescriptor(
                id=device.id,
                uid=device.uid,
                device_id=device.device_id,
                device_name=device.device_name,
                device_model=device.device_model,
            )
            for device in devices
        ]

    return ModuleDescriptor(
        name="user",
        version="1.0.0",
        description="用户账号、个人频道与设备",
        api_router_factory=lambda: user_router.router,
        sql_assets=SQLAssets(MODULE_PATH / "sql"),
        api_document=_read_document("api.yaml"),
        identity_source=IdentitySource(system_uids=system_uids),
        business_data_source=BusinessDataSource(
            channel_get=channel_get,
            get_devices=get_devices,
        ),
    )


# ==================== 好友 ====================

def build_friend_module(ctx: ModuleContext) -> ModuleDescriptor:
    """好友模块：个人频道白名单、好友列表"""
    session_factory = ctx.session_factory
    bus = ctx.event_bus

    async def fetch_friends(uid: str, operation: str) -> List[FriendItem]:
        async with upstream_guard(operation, bus):
            async with session_factory() as db:
                return await UserService(db).get_friends(uid)

    def has_data(channel_id: str, channel_type: int) -> IMDatasourceType:
        if channel_type == ChannelType.PERSON:
            return IMDatasourceType.WHITELIST
        return IMDatasourceType.NONE

    async def whitelist(channel_id: str, channel_type: int) -> List[str]:
        # 单向好友不能互相发消息
        friends = await fetch_friends(channel_id, "friend.whitelist")
        return [friend.uid for friend in friends if friend.is_alone == 0]

    async def get_friends(uid: str) -> List[FriendDescriptor]:
        friends = await fetch_friends(uid, "friend.get_friends")
        return [
            FriendDescriptor(to_uid=friend.uid, remark=friend.remark, is_alone=friend.is_alone)
            for friend in friends
        ]

    return ModuleDescriptor(
        name="friend",
        version="1.0.0",
        description="好友关系与个人频道白名单",
        api_router_factory=lambda: friend_router.router,
        api_document=_read_document("friend.yaml"),
        identity_source=IdentitySource(
            has_data=has_data,
            whitelist=whitelist,
            whitelist_channel_types=frozenset({int(ChannelType.PERSON)}),
        ),
        business_data_source=BusinessDataSource(get_friends=get_friends),
    )


# ==================== 用户管理 ====================

def build_manager_module(ctx: ModuleContext) -> ModuleDescriptor:
    """用户管理模块：仅提供管理路由"""
    return ModuleDescriptor(
        name="user_manager",
        version="1.0.0",
        description="用户管理",
        api_router_factory=lambda: manager_router.router,
    )


def setup(registry: ModuleRegistry, ctx: ModuleContext):
    """模块入口，由 ModuleLoader 调用"""
    registry.register(build_user_module(ctx))
    registry.register(build_friend_module(ctx))
    registry.register(build_manager_module(ctx))

    init_nickname_pool(ctx.backend_path / ctx.settings.nickname_file)
