"""
用户模块数据模型
表名遵循隔离协议：im_前缀
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Integer, BigInteger, SmallInteger, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


def utc_now():
    return datetime.now(timezone.utc)


class Category:
    """用户分类"""
    CUSTOMER_SERVICE = "customerService"    # 客服
    SYSTEM = "system"                       # 系统账号


class IMUser(Base):
    """用户表"""
    __tablename__ = "im_user"
    __table_args__ = (
        Index("idx_im_user_category", "category"),
        {"extend_existing": True, "comment": "用户表"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键ID")
    uid: Mapped[str] = mapped_column(String(40), unique=True, index=True, comment="用户唯一ID")
    name: Mapped[str] = mapped_column(String(100), default="", comment="昵称")
    username: Mapped[str] = mapped_column(String(40), default="", comment="用户名")
    short_no: Mapped[str] = mapped_column(String(40), default="", comment="短号")
    sex: Mapped[int] = mapped_column(SmallInteger, default=0, comment="性别 0.女 1.男")
    category: Mapped[str] = mapped_column(String(40), default="", comment="用户分类")
    robot: Mapped[int] = mapped_column(SmallInteger, default=0, comment="是否机器人")
    status: Mapped[int] = mapped_column(SmallInteger, default=1, comment="状态 0.禁用 1.正常")
    receipt: Mapped[int] = mapped_column(SmallInteger, default=1, comment="是否开启消息回执")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, comment="创建时间")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, comment="更新时间")


class IMUserSetting(Base):
    """用户对某个用户的会话设置（uid 对 to_uid）"""
    __tablename__ = "im_user_setting"
    __table_args__ = (
        UniqueConstraint("uid", "to_uid", name="uq_im_user_setting"),
        {"extend_existing": True, "comment": "用户会话设置表"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键ID")
    uid: Mapped[str] = mapped_column(String(40), index=True, comment="设置所属用户")
    to_uid: Mapped[str] = mapped_column(String(40), comment="目标用户")
    mute: Mapped[int] = mapped_column(SmallInteger, default=0, comment="免打扰")
    top: Mapped[int] = mapped_column(SmallInteger, default=0, comment="置顶")
    chat_pwd_on: Mapped[int] = mapped_column(SmallInteger, default=0, comment="聊天密码")
    screenshot: Mapped[int] = mapped_column(SmallInteger, default=1, comment="截屏通知")
    revoke_remind: Mapped[int] = mapped_column(SmallInteger, default=1, comment="撤回提醒")
    receipt: Mapped[int] = mapped_column(SmallInteger, default=1, comment="消息回执")
    flame: Mapped[int] = mapped_column(SmallInteger, default=0, comment="阅后即焚")
    flame_second: Mapped[int] = mapped_column(Integer, default=0, comment="阅后即焚秒数")
    blacklist: Mapped[int] = mapped_column(SmallInteger, default=0, comment="是否拉黑目标用户")


class IMFriend(Base):
    """好友表（uid 的好友 to_uid）"""
    __tablename__ = "im_friend"
    __table_args__ = (
        UniqueConstraint("uid", "to_uid", name="uq_im_friend"),
        {"extend_existing": True, "comment": "好友表"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键ID")
    uid: Mapped[str] = mapped_column(String(40), index=True, comment="用户ID")
    to_uid: Mapped[str] = mapped_column(String(40), comment="好友ID")
    remark: Mapped[str] = mapped_column(String(100), default="", comment="备注")
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, comment="是否已删除")
    is_alone: Mapped[int] = mapped_column(SmallInteger, default=0, comment="单向好友（对方已删除）")
    vercode: Mapped[str] = mapped_column(String(100), default="", comment="加好友验证码")
    source_desc: Mapped[str] = mapped_column(String(100), default="", comment="加好友来源")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, comment="创建时间")


class IMDevice(Base):
    """用户设备表"""
    __tablename__ = "im_device"
    __table_args__ = (
        {"extend_existing": True, "comment": "用户设备表"},
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True, comment="主键ID"
    )
    uid: Mapped[str] = mapped_column(String(40), index=True, comment="设备所属用户")
    device_id: Mapped[str] = mapped_column(String(100), comment="设备标识")
    device_name: Mapped[str] = mapped_column(String(100), default="", comment="设备名称")
    device_model: Mapped[str] = mapped_column(String(100), default="", comment="设备型号")
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, comment="最后登录时间")


class IMUserOnline(Base):
    """用户在线状态表（每个设备类型一条）"""
    __tablename__ = "im_user_online"
    __table_args__ = (
        UniqueConstraint("uid", "device_flag", name="uq_im_user_online"),
        {"extend_existing": True, "comment": "用户在线状态表"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键ID")
    uid: Mapped[str] = mapped_column(String(40), index=True, comment="用户ID")
    device_flag: Mapped[int] = mapped_column(SmallInteger, default=0, comment="设备类型 0.app 1.web 2.pc")
    online: Mapped[int] = mapped_column(SmallInteger, default=0, comment="是否在线")
    last_offline: Mapped[int] = mapped_column(Integer, default=0, comment="最后离线时间（秒）")
