"""
Domain Events - 领域事件定义

定义回合生命周期、余额变更和大厅操作相关的领域事件.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any, Optional
from enum import Enum, auto
import time
import uuid


class EventType(Enum):
    """事件类型枚举"""
    # 大厅事件
    GAME_SELECTED = auto()
    PROFILE_SYNCED = auto()

    # 回合生命周期事件
    ROUND_STARTED = auto()
    ROUND_SETTLED = auto()
    PLAYER_WON = auto()

    # 余额事件
    BALANCE_DELTA_APPLIED = auto()
    REMOTE_WRITE_FAILED = auto()

    # 错误事件
    INVALID_ACTION_ATTEMPTED = auto()


@dataclass(frozen=True)
class DomainEvent:
    """
    领域事件基类

    Attributes:
        event_id: 事件唯一标识符
        event_type: 事件类型
        aggregate_id: 聚合根ID（通常是account_id或round_id）
        timestamp: 事件发生时间戳
        data: 事件数据
        correlation_id: 关联ID，用于追踪同一回合的相关事件
    """
    event_id: str
    event_type: EventType
    aggregate_id: str
    timestamp: float
    data: Dict[str, Any]
    correlation_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        event_type: EventType,
        aggregate_id: str,
        data: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> DomainEvent:
        """
        创建领域事件的工厂方法

        Args:
            event_type: 事件类型
            aggregate_id: 聚合根ID
            data: 事件数据
            correlation_id: 关联ID

        Returns:
            DomainEvent: 创建的事件实例
        """
        return cls(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            aggregate_id=aggregate_id,
            timestamp=time.time(),
            data=data,
            correlation_id=correlation_id
        )

    def to_dict(self) -> Dict[str, Any]:
        """将事件转换为字典格式，用于序列化"""
        return {
            'event_id': self.event_id,
            'event_type': self.event_type.name,
            'aggregate_id': self.aggregate_id,
            'timestamp': self.timestamp,
            'data': self.data,
            'correlation_id': self.correlation_id
        }
