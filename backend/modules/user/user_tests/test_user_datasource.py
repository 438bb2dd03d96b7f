"""
用户模块数据源能力测试
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from core.config import get_settings
from core.datasource import IMDatasourceType, NOT_APPLICABLE
from core.errors import DataIntegrityException, UpstreamFailureException
from core.events import EventBus, Events, event_bus
from core.loader import ModuleContext
from modules.user.user_manifest import build_user_module, build_friend_module


def make_context(session_factory) -> ModuleContext:
    return ModuleContext(settings=get_settings(), session_factory=session_factory, event_bus=EventBus())


@pytest.mark.asyncio
class TestUserModule:
    """用户模块能力测试"""

    async def test_system_uids(self, user_registry, im_data):
        """测试客服与系统账号"""
        assert await user_registry.system_uids() == ["kefu", "notice"]

    async def test_non_person_channel_not_applicable(self):
        """测试非个人频道直接返回 NOT_APPLICABLE，不访问数据库"""
        session_factory = MagicMock()
        module = build_user_module(make_context(session_factory))

        result = await module.business_data_source.channel_get("g1", 2, "alice")

        assert result is NOT_APPLICABLE
        session_factory.assert_not_called()

    async def test_channel_get_person(self, user_registry, im_data):
        """测试以 alice 视角查看 bob"""
        channel = await user_registry.channel_get("bob", 1, "alice")

        assert channel.channel.channel_id == "bob"
        assert channel.channel.channel_type == 1
        assert channel.name == "Bob"
        assert channel.follow == 1
        assert channel.remark == "老鲍"
        assert channel.mute == 0
        assert channel.be_blacklist == 0
        assert channel.online == 0
        assert channel.extra.source_desc == "通过搜索添加"
        assert channel.extra.vercode == "vc-bob"

    async def test_channel_get_settings_and_online(self, user_registry, im_data):
        """测试以 bob 视角查看 alice：会话设置、被拉黑、在线状态"""
        channel = await user_registry.channel_get("alice", 1, "bob")

        assert channel.mute == 1
        assert channel.stick == 1
        assert channel.flame == 1
        assert channel.flame_second == 30
        assert channel.be_blacklist == 1
        assert channel.online == 1
        assert channel.device_flag == 0
        assert channel.last_offline == 1700000000
        assert channel.extra.sex == 1
        assert channel.extra.chat_pwd_on == 1

    async def test_channel_get_be_deleted(self, user_registry, im_data):
        """测试对方已删除自己"""
        channel = await user_registry.channel_get("carol", 1, "alice")

        assert channel.follow == 1
        assert channel.be_deleted == 1

    async def test_channel_get_without_login(self, user_registry, im_data):
        """测试无登录用户时只返回用户本身信息"""
        channel = await user_registry.channel_get("notice", 1, "")

        assert channel.robot == 1
        assert channel.category == "system"
        assert channel.follow == 0
        assert channel.receipt == 1

    async def test_channel_get_missing_user(self, user_registry, im_data):
        """测试个人频道对应的用户不存在"""
        with pytest.raises(DataIntegrityException) as exc_info:
            await user_registry.channel_get("ghost", 1, "alice")
        assert exc_info.value.message == "用户不存在！"

    async def test_get_devices(self, user_registry, im_data):
        app_id, pc_id = im_data["device_ids"]

        devices = await user_registry.get_devices([app_id, pc_id, 424242])

        assert sorted(d.id for d in devices) == sorted([app_id, pc_id])
        by_id = {d.id: d for d in devices}
        assert by_id[app_id].device_id == "dev-app"
        assert by_id[app_id].uid == "alice"

    async def test_get_devices_unknown_ids(self, user_registry, im_data):
        assert await user_registry.get_devices([424242]) == []

    async def test_get_devices_empty_skips_database(self):
        session_factory = MagicMock()
        module = build_user_module(make_context(session_factory))

        assert await module.business_data_source.get_devices([]) == []
        session_factory.assert_not_called()

    async def test_upstream_failure(self):
        """测试领域服务异常被包装并保留原始异常"""
        cause = RuntimeError("pool exhausted")
        ctx = make_context(MagicMock(side_effect=cause))
        module = build_user_module(ctx)

        with pytest.raises(UpstreamFailureException) as exc_info:
            await module.identity_source.system_uids()

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.data["operation"] == "user.system_uids"


@pytest.mark.asyncio
class TestFriendModule:
    """好友模块能力测试"""

    async def test_has_data(self):
        module = build_friend_module(make_context(MagicMock()))
        has_data = module.identity_source.has_data

        assert has_data("alice", 1) == IMDatasourceType.WHITELIST
        assert has_data("g1", 2) == IMDatasourceType.NONE

    async def test_whitelist_excludes_one_way_friends(self, user_registry, im_data):
        """测试白名单只包含双向好友"""
        visibility = await user_registry.visibility("alice", 1)

        assert visibility.restricted is True
        assert visibility.module == "friend"
        assert visibility.uids == ["bob"]

    async def test_whitelist_excludes_deleted(self, user_registry, im_data):
        assert await user_registry.whitelist("carol", 1) == []
        assert await user_registry.whitelist("bob", 1) == ["alice"]

    async def test_get_friends_includes_one_way(self, user_registry, im_data):
        """测试好友列表包含单向好友"""
        friends = await user_registry.get_friends("alice")

        assert [(f.to_uid, f.is_alone) for f in friends] == [("bob", 0), ("carol", 1)]
        assert friends[0].remark == "老鲍"

    async def test_get_friends_unknown_user(self, user_registry, im_data):
        assert await user_registry.get_friends("ghost") == []

    async def test_whitelist_failure_emits_on_context_bus(self):
        """测试查询失败时在模块上下文注入的事件总线上发布数据源错误事件"""
        bus = EventBus()
        received = []
        bus.subscribe(Events.DATASOURCE_ERROR, lambda e: received.append(e.data["operation"]))
        global_before = len(event_bus.get_history(Events.DATASOURCE_ERROR, source="friend", limit=1000))

        ctx = ModuleContext(
            settings=get_settings(),
            session_factory=MagicMock(side_effect=ConnectionError("refused")),
            event_bus=bus
        )
        module = build_friend_module(ctx)
        with pytest.raises(UpstreamFailureException):
            await module.identity_source.whitelist("alice", 1)
        await asyncio.sleep(0)

        assert received == ["friend.whitelist"]
        assert [e.source for e in bus.get_history(Events.DATASOURCE_ERROR)] == ["friend"]
        assert len(event_bus.get_history(Events.DATASOURCE_ERROR, source="friend", limit=1000)) == global_before
