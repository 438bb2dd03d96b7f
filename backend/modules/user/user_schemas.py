"""
用户模块数据验证模型
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


# ==================== 用户详情 ====================

class UserDetail(BaseModel):
    """
    用户详情（站在登录用户视角）

    领域服务内部使用的完整记录，对外只通过频道投影暴露
    """
    uid: str
    name: str = ""
    username: str = ""
    sex: int = 0
    category: str = ""
    short_no: str = ""
    robot: int = 0
    status: int = 1

    # 登录用户对该用户的设置
    mute: int = 0
    top: int = 0
    receipt: int = 1
    chat_pwd_on: int = 0
    screenshot: int = 1
    revoke_remind: int = 1
    flame: int = 0
    flame_second: int = 0

    # 在线状态
    online: int = 0
    last_offline: int = 0
    device_flag: int = 0

    # 好友关系
    follow: int = 0
    remark: str = ""
    source_desc: str = ""
    vercode: str = ""
    be_deleted: int = 0
    be_blacklist: int = 0


# ==================== 好友 ====================

class FriendItem(BaseModel):
    """好友记录"""
    uid: str                    # 好友UID
    remark: str = ""
    is_alone: int = 0

    model_config = ConfigDict(from_attributes=True)


# ==================== 用户管理 ====================

class UserCreate(BaseModel):
    """创建用户（管理端）"""
    uid: str = Field(..., min_length=1, max_length=40)
    name: Optional[str] = Field(None, max_length=100, description="为空时随机生成昵称")
    username: str = Field("", max_length=40)
    category: str = Field("", max_length=40, description="customerService/system 为系统账号")
    sex: int = Field(0, ge=0, le=1)
    robot: int = Field(0, ge=0, le=1)


class UserResponse(BaseModel):
    """用户信息"""
    uid: str
    name: str
    username: str
    category: str
    short_no: str
    robot: int
    status: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeviceResponse(BaseModel):
    """设备信息"""
    id: int
    device_id: str
    device_name: str
    device_model: str
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
