"""
余额变更协议

每个回合两阶段:
1. 回合开始时立即扣除下注（本地镜像先生效，再把 -stake 发给远程存储）
2. 结算时恰好一次增加派彩（+payout，可能为0）

远程只接收有符号增量，由存储端原子地应用；从不发送整值余额.
远程写入成功后在镜像上确认该增量；失败时记录日志并发布事件，本地镜像不回滚.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Set

from ..events import DomainEvent, EventBus, EventType
from .balance_delta import BalanceDelta
from .balance_mirror import BalanceMirror

__all__ = ['BalanceStore', 'BalanceMutationProtocol']

logger = logging.getLogger(__name__)


class BalanceStore(Protocol):
    """远程余额存储端口"""

    async def apply_balance_delta(self, account_id: str, delta: int) -> int:
        """原子地应用有符号增量并返回新余额（最低为0）"""
        ...


class BalanceMutationProtocol:
    """
    余额变更协议

    Attributes:
        mirror: 本地乐观镜像
        store: 远程余额存储
    """

    def __init__(self, mirror: BalanceMirror, store: BalanceStore,
                 event_bus: Optional[EventBus] = None,
                 write_timeout: Optional[float] = None):
        """
        Args:
            mirror: 本地余额镜像
            store: 远程余额存储
            event_bus: 事件总线，为None时不发布事件
            write_timeout: 远程写入超时（秒），为None时不限时
        """
        self.mirror = mirror
        self.store = store
        self._event_bus = event_bus
        self._write_timeout = write_timeout
        self._debited: Dict[str, int] = {}
        self._credited: Set[str] = set()
        self._failed_writes: List[BalanceDelta] = []

    @property
    def account_id(self) -> str:
        return self.mirror.account_id

    @property
    def pending_rounds(self) -> List[str]:
        """已扣款但尚未结算的回合"""
        return [round_id for round_id in self._debited if round_id not in self._credited]

    @property
    def failed_writes(self) -> List[BalanceDelta]:
        return list(self._failed_writes)

    def can_afford(self, stake: int) -> bool:
        return self.mirror.can_afford(stake)

    async def debit(self, round_id: str, stake: int) -> bool:
        """
        扣除下注

        Args:
            round_id: 回合ID
            stake: 下注金额

        Returns:
            bool: 是否已扣除；重复扣款或余额不足时为False且无任何变化
        """
        if round_id in self._debited:
            logger.warning(f"[余额] 回合 {round_id[:8]} 已扣款，忽略重复扣款")
            return False
        if not self.mirror.can_afford(stake):
            logger.warning(f"[余额] 余额 {self.mirror.balance} 不足以下注 {stake}")
            return False

        delta = BalanceDelta.debit(self.account_id, round_id, stake)
        self._debited[round_id] = stake
        self._apply_locally(delta)
        await self._send(delta)
        return True

    async def credit(self, round_id: str, payout: int) -> bool:
        """
        结算派彩，每个回合恰好一次且必须在扣款之后

        Args:
            round_id: 回合ID
            payout: 派彩金额（可为0）

        Returns:
            bool: 是否已记账
        """
        if round_id not in self._debited:
            logger.warning(f"[余额] 回合 {round_id[:8]} 未扣款，拒绝派彩")
            return False
        if round_id in self._credited:
            logger.warning(f"[余额] 回合 {round_id[:8]} 已结算，拒绝重复派彩")
            return False
        if payout < 0:
            raise ValueError(f"派彩不能为负数: {payout}")

        delta = BalanceDelta.credit(self.account_id, round_id, payout)
        self._credited.add(round_id)
        self._apply_locally(delta)
        if not delta.is_zero:
            await self._send(delta)
        return True

    def _apply_locally(self, delta: BalanceDelta) -> None:
        balance = self.mirror.apply(delta)
        logger.info(f"[余额] {delta.delta_type.name} {delta.amount:+d} (回合 {delta.round_id[:8]}) -> {balance}")
        self._publish(EventType.BALANCE_DELTA_APPLIED, delta, {'balance': balance})

    async def _send(self, delta: BalanceDelta) -> None:
        try:
            write = self.store.apply_balance_delta(self.account_id, delta.amount)
            if self._write_timeout is not None:
                await asyncio.wait_for(write, timeout=self._write_timeout)
            else:
                await write
        except asyncio.CancelledError:
            self.mirror.abandon(delta)
            raise
        except Exception as e:
            self.mirror.abandon(delta)
            self._failed_writes.append(delta)
            logger.error(
                f"[余额] 远程写入失败 {delta.delta_type.name} {delta.amount:+d} "
                f"(回合 {delta.round_id[:8]}): {e}，本地镜像保持不变"
            )
            self._publish(EventType.REMOTE_WRITE_FAILED, delta, {'error': str(e)})
        else:
            self.mirror.acknowledge(delta)

    def _publish(self, event_type: EventType, delta: BalanceDelta, extra: Dict) -> None:
        if self._event_bus is None:
            return
        data = delta.to_dict()
        data.update(extra)
        self._event_bus.publish(DomainEvent.create(
            event_type,
            aggregate_id=self.account_id,
            data=data,
            correlation_id=delta.round_id,
        ))
