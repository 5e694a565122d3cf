"""
Event Bus - 事件总线系统

负责事件的发布、订阅和分发. 运行在单线程事件循环中，
处理器同步调用；处理器内部的异常只记录日志，不会传播给发布者.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional
from collections import defaultdict
import logging

from .domain_events import DomainEvent, EventType

EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """
    事件总线

    负责事件的发布、订阅和分发，并保留有限长度的事件历史.
    """

    def __init__(self, max_history_size: int = 1000):
        """
        初始化事件总线

        Args:
            max_history_size: 事件历史最大保留条数
        """
        self._handlers: Dict[EventType, List[EventHandler]] = defaultdict(list)
        self._global_handlers: List[EventHandler] = []
        self._event_history: List[DomainEvent] = []
        self._max_history_size = max_history_size
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        订阅特定类型的事件

        Args:
            event_type: 事件类型
            handler: 事件处理函数
        """
        self._handlers[event_type].append(handler)
        self._logger.debug(f"Handler {getattr(handler, '__name__', handler)} subscribed to {event_type.name}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """订阅所有事件"""
        self._global_handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """
        取消订阅特定类型的事件

        Returns:
            bool: 是否成功取消订阅
        """
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
            return True
        return False

    def unsubscribe_all(self, handler: EventHandler) -> bool:
        """取消订阅所有事件"""
        if handler in self._global_handlers:
            self._global_handlers.remove(handler)
            return True
        return False

    def publish(self, event: DomainEvent) -> None:
        """
        发布事件

        Args:
            event: 要发布的领域事件
        """
        self._add_to_history(event)
        handlers = list(self._handlers[event.event_type]) + list(self._global_handlers)

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling event {event.event_type.name} in {getattr(handler, '__name__', handler)}: {e}",
                    exc_info=True
                )

    def get_event_history(self, event_type: Optional[EventType] = None,
                          limit: Optional[int] = None) -> List[DomainEvent]:
        """
        获取事件历史

        Args:
            event_type: 事件类型过滤，为None时返回所有类型
            limit: 只返回最近的limit条

        Returns:
            List[DomainEvent]: 事件历史列表
        """
        events = self._event_history
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        if limit is not None:
            events = events[-limit:]
        return list(events)

    def clear_history(self) -> None:
        self._event_history.clear()

    def get_handler_count(self, event_type: Optional[EventType] = None) -> int:
        """获取处理器数量"""
        if event_type is None:
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
        return len(self._handlers[event_type])

    def _add_to_history(self, event: DomainEvent) -> None:
        self._event_history.append(event)
        if len(self._event_history) > self._max_history_size:
            self._event_history = self._event_history[-self._max_history_size:]


# 全局事件总线实例
_global_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """
    获取全局事件总线实例

    Returns:
        EventBus: 全局事件总线
    """
    global _global_event_bus
    if _global_event_bus is None:
        _global_event_bus = EventBus()
    return _global_event_bus


def set_event_bus(event_bus: Optional[EventBus]) -> None:
    """设置全局事件总线实例（主要用于测试）"""
    global _global_event_bus
    _global_event_bus = event_bus
