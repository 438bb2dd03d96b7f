"""
事件总线系统
内核向旁路观察者（日志、监控、测试）广播注册表与数据源的状态变化

事件只做通知，订阅者的异常不会影响注册流程或数据源查询
"""

from typing import Any, Callable, Dict, List, Optional, Set
from dataclasses import dataclass, field
from datetime import datetime, timezone
import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """事件数据结构"""
    name: str
    source: str  # kernel 或模块名
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[Event], Any]


class EventBus:
    """事件总线"""

    def __init__(self, max_history: int = 1000):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._history: List[Event] = []
        self._max_history = max_history
        # 后台发布任务，完成前保持引用
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        """订阅事件，返回取消订阅函数"""
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"订阅事件: {event_name}")
        return lambda: self.unsubscribe(event_name, handler)

    def unsubscribe(self, event_name: str, handler: EventHandler):
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug(f"取消订阅: {event_name}")

    def _record(self, event: Event):
        self._history.append(event)
        if len(self._history) > self._max_history:
            del self._history[:-self._max_history]

    async def _dispatch(self, event: Event):
        for handler in list(self._handlers.get(event.name, [])):
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"事件处理错误 {event.name} ({event.source}): {e}")

    async def publish(self, event: Event):
        """发布事件并等待所有订阅者处理完成"""
        self._record(event)
        logger.debug(f"发布事件: {event.name} 来自 {event.source}")
        await self._dispatch(event)

    def emit(self, name: str, source: str, data: Optional[Dict[str, Any]] = None):
        """
        同步发布

        有运行中的事件循环时投递为后台任务；
        注册阶段（导入期）没有事件循环，只记录历史
        """
        event = Event(name=name, source=source, data=data or {})
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._record(event)
            return
        task = loop.create_task(self.publish(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def get_history(
        self,
        event_name: Optional[str] = None,
        source: Optional[str] = None,
        limit: int = 100
    ) -> List[Event]:
        """按事件名和来源过滤历史"""
        events = [
            e for e in self._history
            if (event_name is None or e.name == event_name)
            and (source is None or e.source == source)
        ]
        return events[-limit:]


# 全局事件总线实例
event_bus = EventBus()


class Events:
    """
    系统事件名称

    data 约定：
    - module.registered: {"module": 模块名}
    - registry.sealed: {"modules": [模块名...]}
    - datasource.error: {"operation": "模块.能力", "error": 错误信息}
    """
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"

    MODULE_REGISTERED = "module.registered"
    REGISTRY_SEALED = "registry.sealed"

    DATASOURCE_ERROR = "datasource.error"
