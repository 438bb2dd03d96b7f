"""
数据源能力协议
业务模块通过这些能力包向消息核心提供身份、可见性、频道、设备与好友数据

能力包中的每个能力都是可选的：
- 能力包为 None：模块不参与该类数据源
- 能力为 None：模块提供能力包，但不实现该项能力
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Awaitable, Callable, FrozenSet, List, Optional, Union

from schemas.datasource import ChannelDescriptor, DeviceDescriptor, FriendDescriptor

from .errors import AppException, UpstreamFailureException
from .events import EventBus, Events, event_bus

logger = logging.getLogger(__name__)


class ChannelType(IntEnum):
    """消息核心的频道类型"""
    PERSON = 1              # 个人
    GROUP = 2               # 群组
    CUSTOMER_SERVICE = 3    # 客服
    COMMUNITY = 4           # 社区
    COMMUNITY_TOPIC = 5     # 社区话题
    INFO = 6                # 资讯
    DATA = 7                # 数据


class IMDatasourceType(Enum):
    """模块对某个频道持有的可见性数据类型"""
    NONE = "none"
    WHITELIST = "whitelist"


class NotApplicable(Enum):
    """
    "本模块不处理该请求"的哨兵值

    由能力函数返回而不是抛出，聚合查询据此尝试下一个模块
    """
    NOT_APPLICABLE = "not_applicable"

    def __bool__(self):
        return False


NOT_APPLICABLE = NotApplicable.NOT_APPLICABLE


# ==================== 能力函数签名 ====================

SystemUIDsFunc = Callable[[], Awaitable[List[str]]]
HasDataFunc = Callable[[str, int], IMDatasourceType]
WhitelistFunc = Callable[[str, int], Awaitable[List[str]]]
ChannelGetFunc = Callable[[str, int, str], Awaitable[Union[ChannelDescriptor, NotApplicable]]]
GetDevicesFunc = Callable[[List[int]], Awaitable[List[DeviceDescriptor]]]
GetFriendsFunc = Callable[[str], Awaitable[List[FriendDescriptor]]]


@dataclass(frozen=True)
class IdentitySource:
    """身份与可见性能力包"""
    system_uids: Optional[SystemUIDsFunc] = None
    has_data: Optional[HasDataFunc] = None
    whitelist: Optional[WhitelistFunc] = None
    # 声明可能返回 WHITELIST 的频道类型，注册时据此检测归属冲突
    whitelist_channel_types: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class BusinessDataSource:
    """业务数据能力包"""
    channel_get: Optional[ChannelGetFunc] = None
    get_devices: Optional[GetDevicesFunc] = None
    get_friends: Optional[GetFriendsFunc] = None


@dataclass(frozen=True)
class Visibility:
    """可见性查询结果"""
    type: IMDatasourceType = IMDatasourceType.NONE
    uids: List[str] = field(default_factory=list)
    module: Optional[str] = None  # 提供白名单的模块

    @property
    def restricted(self) -> bool:
        return self.type == IMDatasourceType.WHITELIST


@asynccontextmanager
async def upstream_guard(operation: str, bus: Optional[EventBus] = None):
    """
    包装领域服务调用

    AppException 原样抛出；其他异常记录日志，在 bus（默认全局事件总线）上发布 datasource.error，
    再包装为 UpstreamFailureException，原始异常保留为 __cause__
    """
    try:
        yield
    except AppException:
        raise
    except Exception as e:
        logger.error(f"数据源查询失败 {operation}: {e}", exc_info=True)
        (bus or event_bus).emit(Events.DATASOURCE_ERROR, operation.split(".")[0], {
            "operation": operation,
            "error": str(e)
        })
        raise UpstreamFailureException(operation, e) from e
