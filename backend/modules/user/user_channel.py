"""
用户详情到个人频道的投影

逐字段显式映射，没有反射式拷贝：UserDetail 新增需要对外暴露的字段时必须在这里补上
"""

from core.datasource import ChannelType
from schemas.datasource import ChannelDescriptor, ChannelExtra, ChannelRef

from .user_schemas import UserDetail

AVATAR_PATH_TEMPLATE = "users/{uid}/avatar"


def new_channel_resp_with_user_detail(
    user: UserDetail,
    avatar_template: str = AVATAR_PATH_TEMPLATE
) -> ChannelDescriptor:
    """用户详情 -> 个人频道描述"""
    return ChannelDescriptor(
        channel=ChannelRef(channel_id=user.uid, channel_type=int(ChannelType.PERSON)),
        name=user.name,
        username=user.username,
        logo=avatar_template.format(uid=user.uid),
        mute=user.mute,
        stick=user.top,
        receipt=user.receipt,
        robot=user.robot,
        online=user.online,
        last_offline=user.last_offline,
        device_flag=user.device_flag,
        category=user.category,
        follow=user.follow,
        remark=user.remark,
        status=user.status,
        be_blacklist=user.be_blacklist,
        be_deleted=user.be_deleted,
        flame=user.flame,
        flame_second=user.flame_second,
        extra=ChannelExtra(
            sex=user.sex,
            chat_pwd_on=user.chat_pwd_on,
            short_no=user.short_no,
            source_desc=user.source_desc,
            vercode=user.vercode,
            screenshot=user.screenshot,
            revoke_remind=user.revoke_remind,
        ),
    )
