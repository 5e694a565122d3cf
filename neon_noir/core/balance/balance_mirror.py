"""
余额镜像

本地乐观缓存: 增量立即生效以便界面即时刷新，余额最低为0.
权威余额保存在远程账户存储中. 镜像记录尚未被远程确认的增量，
收到资料快照时余额为 max(0, 远程余额 + 未确认增量之和)，
因此快照不会抹掉仍在途中的扣款.
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
import logging
import threading
import time

from .balance_delta import BalanceDelta

__all__ = ['BalanceMirror', 'BalanceSnapshot']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    """余额镜像快照"""
    account_id: str
    balance: int
    delta_count: int
    unacknowledged: int
    last_synced_balance: Optional[int]
    timestamp: float


class BalanceMirror:
    """
    本地余额镜像

    Examples:
        >>> mirror = BalanceMirror("acct-1", 100)
        >>> mirror.apply(BalanceDelta.debit("acct-1", "r1", 30))
        70
    """

    def __init__(self, account_id: str, initial_balance: int = 0):
        """
        初始化余额镜像

        Args:
            account_id: 账户ID
            initial_balance: 初始余额
        """
        if initial_balance < 0:
            raise ValueError(f"初始余额不能为负数: {initial_balance}")
        self._account_id = account_id
        self._balance = initial_balance
        self._history: List[BalanceDelta] = []
        # delta_id -> (增量, 应用时的同步序号)
        self._unacked: Dict[str, Tuple[BalanceDelta, int]] = {}
        self._last_synced: Optional[int] = None
        self._sync_count = 0
        self._lock = threading.RLock()

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def balance(self) -> int:
        with self._lock:
            return self._balance

    @property
    def unacknowledged(self) -> List[BalanceDelta]:
        """已在本地生效但远程尚未确认的增量"""
        with self._lock:
            return [delta for delta, _ in self._unacked.values()]

    def can_afford(self, stake: int) -> bool:
        with self._lock:
            return 0 < stake <= self._balance

    def apply(self, delta: BalanceDelta) -> int:
        """
        应用一个增量，结果钳制在0以上

        非零增量在acknowledge或abandon之前视为未确认.

        Args:
            delta: 余额增量

        Returns:
            int: 应用后的余额

        Raises:
            ValueError: 当增量属于其它账户时
        """
        if delta.account_id != self._account_id:
            raise ValueError(f"增量账户 {delta.account_id} 与镜像账户 {self._account_id} 不一致")
        with self._lock:
            self._balance = max(0, self._balance + delta.amount)
            self._history.append(delta)
            if not delta.is_zero:
                self._unacked[delta.delta_id] = (delta, self._sync_count)
            return self._balance

    def acknowledge(self, delta: BalanceDelta) -> int:
        """
        远程已应用该增量

        账户存储在写入返回前先推送包含该写入的快照. 应用该增量之后若收到过快照，
        最近一次快照已包含它，按快照重新计算余额；否则余额不变.
        """
        with self._lock:
            entry = self._unacked.pop(delta.delta_id, None)
            if entry is not None and self._sync_count > entry[1]:
                self._balance = self._reconcile(self._last_synced)
            return self._balance

    def abandon(self, delta: BalanceDelta) -> int:
        """远程写入失败: 不再等待确认，本地余额保持不变直到下一次快照"""
        with self._lock:
            self._unacked.pop(delta.delta_id, None)
            return self._balance

    def sync(self, remote_balance: int) -> int:
        """
        按远程资料快照重新计算本地镜像

        只写本地，不会回写远程. 未确认的增量叠加在快照之上.

        Args:
            remote_balance: 快照中的远程余额

        Returns:
            int: 同步后的本地余额
        """
        with self._lock:
            self._last_synced = remote_balance
            self._sync_count += 1
            balance = self._reconcile(remote_balance)
            if balance != self._balance:
                logger.debug(
                    f"[余额] 同步远程余额 {remote_balance}（未确认 {len(self._unacked)} 笔）: "
                    f"{self._balance} -> {balance}"
                )
            self._balance = balance
            return self._balance

    def _reconcile(self, remote_balance: int) -> int:
        return max(0, remote_balance + sum(delta.amount for delta, _ in self._unacked.values()))

    def get_history(self, round_id: Optional[str] = None) -> List[BalanceDelta]:
        """获取增量历史"""
        with self._lock:
            if round_id is None:
                return self._history.copy()
            return [d for d in self._history if d.round_id == round_id]

    def create_snapshot(self) -> BalanceSnapshot:
        with self._lock:
            return BalanceSnapshot(
                account_id=self._account_id,
                balance=self._balance,
                delta_count=len(self._history),
                unacknowledged=len(self._unacked),
                last_synced_balance=self._last_synced,
                timestamp=time.time(),
            )
