"""
事件总线单元测试
"""

import asyncio

import pytest

from core.events import EventBus, Event, Events


class TestEvent:
    """事件数据类测试"""

    def test_event_creation(self):
        """测试事件创建"""
        event = Event(name="test.event", source="test_module")

        assert event.name == "test.event"
        assert event.source == "test_module"
        assert event.data == {}
        assert event.timestamp is not None


class TestEventBus:
    """事件总线测试"""

    def test_subscribe_and_unsubscribe(self):
        """测试订阅与取消订阅"""
        bus = EventBus()

        def handler(event):
            pass

        bus.subscribe("test.event", handler)
        assert handler in bus._handlers["test.event"]

        bus.unsubscribe("test.event", handler)
        assert handler not in bus._handlers["test.event"]

        # 重复取消不报错
        bus.unsubscribe("test.event", handler)
        bus.unsubscribe("missing.event", handler)

    def test_subscribe_returns_unsubscriber(self):
        bus = EventBus()
        cancel = bus.subscribe("test.event", print)

        cancel()

        assert bus._handlers["test.event"] == []

    @pytest.mark.asyncio
    async def test_publish_calls_handlers(self):
        """测试发布事件调用同步与异步处理器"""
        bus = EventBus()
        received = []

        def sync_handler(event):
            received.append(("sync", event.data["module"]))

        async def async_handler(event):
            received.append(("async", event.data["module"]))

        bus.subscribe(Events.MODULE_REGISTERED, sync_handler)
        bus.subscribe(Events.MODULE_REGISTERED, async_handler)

        await bus.publish(Event(name=Events.MODULE_REGISTERED, source="kernel", data={"module": "user"}))

        assert received == [("sync", "user"), ("async", "user")]
        assert len(bus.get_history(Events.MODULE_REGISTERED)) == 1

    @pytest.mark.asyncio
    async def test_handler_error_is_isolated(self):
        """测试处理器异常不影响其他处理器"""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("handler failed")

        bus.subscribe("test.event", broken)
        bus.subscribe("test.event", lambda e: received.append(e.name))

        await bus.publish(Event(name="test.event", source="test"))

        assert received == ["test.event"]

    def test_emit_without_loop_records_history(self):
        """测试启动阶段（无事件循环）emit 只记录历史"""
        bus = EventBus()
        bus.emit(Events.REGISTRY_SEALED, "kernel", {"modules": ["user"]})

        history = bus.get_history()
        assert len(history) == 1
        assert history[0].data == {"modules": ["user"]}

    @pytest.mark.asyncio
    async def test_emit_in_loop_publishes(self):
        """测试运行中的循环内 emit 异步发布"""
        bus = EventBus()
        received = []
        bus.subscribe(Events.DATASOURCE_ERROR, lambda e: received.append(e.data["operation"]))

        bus.emit(Events.DATASOURCE_ERROR, "user", {"operation": "user.channel_get"})
        await asyncio.sleep(0)

        assert received == ["user.channel_get"]

    @pytest.mark.asyncio
    async def test_emit_keeps_task_until_done(self):
        """测试后台发布任务在完成前被持有，完成后释放"""
        bus = EventBus()
        bus.emit(Events.MODULE_REGISTERED, "kernel", {"module": "user"})

        assert len(bus._pending) == 1
        await asyncio.gather(*list(bus._pending))
        await asyncio.sleep(0)

        assert bus._pending == set()
        assert len(bus.get_history(Events.MODULE_REGISTERED)) == 1

    def test_history_limit(self):
        """测试历史记录过滤与数量限制"""
        bus = EventBus()
        for i in range(5):
            bus.emit("a", "test", {"i": i})
        bus.emit("b", "test")

        assert len(bus.get_history("a")) == 5
        assert [e.data["i"] for e in bus.get_history("a", limit=2)] == [3, 4]
        assert len(bus.get_history()) == 6

    def test_history_by_source(self):
        bus = EventBus(max_history=3)
        bus.emit(Events.DATASOURCE_ERROR, "user", {"operation": "user.channel_get"})
        bus.emit(Events.DATASOURCE_ERROR, "friend", {"operation": "friend.whitelist"})
        bus.emit(Events.MODULE_REGISTERED, "kernel", {"module": "user"})
        bus.emit(Events.MODULE_REGISTERED, "kernel", {"module": "friend"})

        # 超出上限时丢弃最早的记录
        assert bus.get_history(source="user") == []
        friend_errors = bus.get_history(Events.DATASOURCE_ERROR, source="friend")
        assert [e.data["operation"] for e in friend_errors] == ["friend.whitelist"]
