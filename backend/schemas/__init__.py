"""
数据验证模式目录
"""

from .datasource import (
    ChannelRef, ChannelExtra, ChannelDescriptor,
    DeviceDescriptor, FriendDescriptor,
    DatasourceRequest, ChannelQuery, DevicesQuery, FriendsQuery,
    ModuleInfo
)

__all__ = [
    # 频道
    "ChannelRef", "ChannelExtra", "ChannelDescriptor",
    # 设备 / 好友
    "DeviceDescriptor", "FriendDescriptor",
    # 数据源回调
    "DatasourceRequest", "ChannelQuery", "DevicesQuery", "FriendsQuery",
    # 模块
    "ModuleInfo",
]
