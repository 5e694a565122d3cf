"""
余额增量记录

定义余额变更的类型和记录结构. 余额只能通过有符号增量调整，不允许整值覆盖.
"""

from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import time
import uuid

__all__ = ['DeltaType', 'BalanceDelta']


class DeltaType(Enum):
    """余额增量类型"""
    DEBIT = auto()       # 回合开始时扣除下注
    CREDIT = auto()      # 结算时增加派彩


@dataclass(frozen=True)
class BalanceDelta:
    """
    一次有符号的余额调整

    Attributes:
        delta_id: 增量唯一标识
        delta_type: 增量类型
        account_id: 账户ID
        round_id: 所属回合
        amount: 有符号金额（DEBIT为负，CREDIT为非负）
        timestamp: 创建时间
        description: 描述
    """
    delta_type: DeltaType
    account_id: str
    round_id: str
    amount: int
    timestamp: float = field(default_factory=time.time)
    description: str = ""
    delta_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """验证增量记录的有效性"""
        if not self.account_id:
            raise ValueError("account_id不能为空")
        if not self.round_id:
            raise ValueError("round_id不能为空")
        if self.delta_type == DeltaType.DEBIT and self.amount >= 0:
            raise ValueError(f"DEBIT增量必须为负数: {self.amount}")
        if self.delta_type == DeltaType.CREDIT and self.amount < 0:
            raise ValueError(f"CREDIT增量不能为负数: {self.amount}")

    @classmethod
    def debit(cls, account_id: str, round_id: str, stake: int, description: str = "") -> 'BalanceDelta':
        """创建扣除下注的增量"""
        if stake <= 0:
            raise ValueError(f"下注金额必须为正数: {stake}")
        return cls(
            delta_type=DeltaType.DEBIT,
            account_id=account_id,
            round_id=round_id,
            amount=-stake,
            description=description or f"下注 {stake}",
        )

    @classmethod
    def credit(cls, account_id: str, round_id: str, payout: int, description: str = "") -> 'BalanceDelta':
        """创建增加派彩的增量"""
        return cls(
            delta_type=DeltaType.CREDIT,
            account_id=account_id,
            round_id=round_id,
            amount=payout,
            description=description or f"派彩 {payout}",
        )

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'delta_id': self.delta_id,
            'delta_type': self.delta_type.name,
            'account_id': self.account_id,
            'round_id': self.round_id,
            'amount': self.amount,
            'timestamp': self.timestamp,
            'description': self.description,
        }
