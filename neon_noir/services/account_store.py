"""
账户存储端口

远程账户存储的契约以及一个内存参考实现.
余额只能通过有符号增量原子地调整，结果最低为0.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from pydantic import Field
from pydantic.dataclasses import dataclass as pydantic_dataclass

from ..core.exceptions import NeonNoirError

__all__ = [
    'Profile',
    'ProfileListener',
    'AccountStore',
    'AccountNotFoundError',
    'RemoteWriteError',
    'InMemoryAccountStore',
    'DEFAULT_STARTING_BALANCE',
]

logger = logging.getLogger(__name__)

DEFAULT_STARTING_BALANCE = 10000


class AccountNotFoundError(NeonNoirError):
    """账户不存在"""

    def __init__(self, account_id: str):
        super().__init__(f"账户 {account_id} 不存在", "ACCOUNT_NOT_FOUND")
        self.account_id = account_id


class RemoteWriteError(NeonNoirError):
    """远程余额写入失败"""

    def __init__(self, message: str):
        super().__init__(message, "REMOTE_WRITE_FAILED")


@pydantic_dataclass(frozen=True)
class Profile:
    """账户资料快照.

    每次远程变更都会推送一个新的快照.
    """
    account_id: str = Field(..., min_length=1, description="账户ID")
    username: str = Field(..., min_length=1, description="用户名")
    balance: int = Field(..., ge=0, description="余额")
    updated_at: datetime = Field(default_factory=datetime.now, description="最后更新时间")


ProfileListener = Callable[[Profile], None]


class AccountStore(Protocol):
    """账户存储协议"""

    async def get_profile(self, account_id: str) -> Profile:
        """获取资料，账户不存在时抛出AccountNotFoundError"""
        ...

    def subscribe_profile(self, account_id: str, on_change: ProfileListener) -> Callable[[], None]:
        """订阅资料变更，返回取消订阅函数"""
        ...

    async def apply_balance_delta(self, account_id: str, delta: int) -> int:
        """
        原子地应用有符号增量，返回新余额；失败时抛出RemoteWriteError

        包含本次写入的资料快照必须在返回之前推送给订阅者.
        """
        ...


class InMemoryAccountStore:
    """
    内存账户存储

    用asyncio.Lock串行化增量写入；可注入延迟和写入失败以模拟远程存储.
    """

    def __init__(self, latency: float = 0.0):
        """
        Args:
            latency: 每次写入的模拟网络延迟（秒）
        """
        self._accounts: Dict[str, Profile] = {}
        self._listeners: Dict[str, List[ProfileListener]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._latency = latency
        self._fail_next = 0
        self._write_log: List[Dict] = []

    def create_account(self, username: str, starting_balance: int = DEFAULT_STARTING_BALANCE,
                       account_id: Optional[str] = None) -> Profile:
        """
        注册新账户

        Args:
            username: 用户名
            starting_balance: 初始余额
            account_id: 指定账户ID，为None时自动生成

        Returns:
            Profile: 新账户资料
        """
        account_id = account_id or str(uuid.uuid4())
        if account_id in self._accounts:
            raise ValueError(f"账户 {account_id} 已存在")
        profile = Profile(account_id=account_id, username=username, balance=starting_balance)
        self._accounts[account_id] = profile
        logger.info(f"[账户] 注册 {username} ({account_id[:8]})，初始余额 {starting_balance}")
        return profile

    async def get_profile(self, account_id: str) -> Profile:
        profile = self._accounts.get(account_id)
        if profile is None:
            raise AccountNotFoundError(account_id)
        return profile

    def subscribe_profile(self, account_id: str, on_change: ProfileListener) -> Callable[[], None]:
        """
        订阅资料变更

        订阅时立即推送一次当前快照.

        Raises:
            AccountNotFoundError: 当账户不存在
        """
        profile = self._accounts.get(account_id)
        if profile is None:
            raise AccountNotFoundError(account_id)
        self._listeners[account_id].append(on_change)
        on_change(profile)

        def unsubscribe() -> None:
            if on_change in self._listeners[account_id]:
                self._listeners[account_id].remove(on_change)

        return unsubscribe

    def listener_count(self, account_id: str) -> int:
        return len(self._listeners.get(account_id, []))

    async def apply_balance_delta(self, account_id: str, delta: int) -> int:
        if self._latency:
            await asyncio.sleep(self._latency)

        async with self._lock:
            if self._fail_next > 0:
                self._fail_next -= 1
                raise RemoteWriteError(f"写入账户 {account_id} 失败（模拟）")
            profile = self._accounts.get(account_id)
            if profile is None:
                raise AccountNotFoundError(account_id)
            new_balance = max(0, profile.balance + delta)
            updated = Profile(
                account_id=profile.account_id,
                username=profile.username,
                balance=new_balance,
            )
            self._accounts[account_id] = updated
            self._write_log.append({'account_id': account_id, 'delta': delta, 'balance': new_balance})

        self._notify(updated)
        return new_balance

    def fail_next_writes(self, count: int = 1) -> None:
        """让接下来的count次写入失败"""
        self._fail_next = count

    @property
    def write_log(self) -> List[Dict]:
        """收到的所有增量写入（不包含失败的写入）"""
        return list(self._write_log)

    def _notify(self, profile: Profile) -> None:
        for listener in list(self._listeners.get(profile.account_id, [])):
            try:
                listener(profile)
            except Exception as e:
                logger.error(f"[账户] 资料订阅回调出错: {e}", exc_info=True)
