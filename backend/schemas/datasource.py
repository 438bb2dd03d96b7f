"""
数据源中立结构
消息核心所理解的频道、设备、好友描述，与任何业务模块的内部模型无关
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ==================== 频道 ====================

class ChannelRef(BaseModel):
    """频道标识"""
    channel_id: str
    channel_type: int


class ChannelExtra(BaseModel):
    """
    频道扩展属性

    固定的七个字段，不接受未声明的键；新增扩展字段必须在这里显式定义
    """
    model_config = ConfigDict(extra="forbid")

    sex: int = 0                    # 性别
    chat_pwd_on: int = 0            # 是否开启聊天密码
    short_no: str = ""              # 短号
    source_desc: str = ""           # 加好友来源描述
    vercode: str = ""               # 加好友验证码
    screenshot: int = 0             # 截屏通知
    revoke_remind: int = 0          # 撤回提醒


class ChannelDescriptor(BaseModel):
    """个人频道描述"""
    channel: ChannelRef
    name: str = ""                  # 显示名称
    username: str = ""              # 用户名
    logo: str = ""                  # 头像路径
    mute: int = 0                   # 免打扰
    stick: int = 0                  # 置顶
    receipt: int = 0                # 消息回执
    robot: int = 0                  # 是否机器人
    online: int = 0                 # 是否在线
    last_offline: int = 0           # 最后离线时间（秒）
    device_flag: int = 0            # 最后在线设备
    category: str = ""              # 用户分类
    follow: int = 0                 # 是否好友
    remark: str = ""                # 备注
    status: int = 1                 # 用户状态
    be_blacklist: int = 0           # 是否被对方拉黑
    be_deleted: int = 0             # 是否被对方删除
    flame: int = 0                  # 阅后即焚
    flame_second: int = 0           # 阅后即焚秒数
    extra: ChannelExtra = Field(default_factory=ChannelExtra)


# ==================== 设备 ====================

class DeviceDescriptor(BaseModel):
    """设备描述"""
    id: int
    uid: str
    device_id: str
    device_name: str = ""
    device_model: str = ""

    model_config = ConfigDict(from_attributes=True)


# ==================== 好友 ====================

class FriendDescriptor(BaseModel):
    """好友描述"""
    to_uid: str
    remark: str = ""
    is_alone: int = 0               # 单向好友（对方已删除自己）


# ==================== 回调接口 ====================

class DatasourceRequest(BaseModel):
    """消息核心的数据源回调请求"""
    cmd: str = Field(..., description="命令: getSystemUIDs/getWhitelist/getChannelInfo/getDevices/getFriends")
    data: Dict[str, Any] = Field(default_factory=dict)


class ChannelQuery(BaseModel):
    """频道查询参数"""
    channel_id: str
    channel_type: int
    login_uid: str = ""


class DevicesQuery(BaseModel):
    """设备查询参数"""
    ids: List[int] = Field(default_factory=list)


class FriendsQuery(BaseModel):
    """好友查询参数"""
    uid: str


class ModuleInfo(BaseModel):
    """已注册模块信息"""
    name: str
    version: str
    description: str = ""
    router_prefix: str
    has_sql: bool = False
    has_api_document: bool = False
    identity_source: Optional[List[str]] = None
    business_data_source: Optional[List[str]] = None
