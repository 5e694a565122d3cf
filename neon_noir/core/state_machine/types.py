"""
状态机类型定义

定义游戏种类、各游戏阶段、回合生命周期和玩家动作等基础类型.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional

from ..exceptions import RoundAlreadySettledError, InvalidStakeError

__all__ = [
    'GameKind',
    'MinesPhase',
    'PlinkoPhase',
    'BlackjackPhase',
    'PokerPhase',
    'RoundStatus',
    'GameAction',
    'Round',
]


class GameKind(Enum):
    """游戏种类"""
    MINES = "mines"
    PLINKO = "plinko"
    BLACKJACK = "blackjack"
    POKER = "poker"

    @classmethod
    def parse(cls, value) -> 'GameKind':
        if isinstance(value, GameKind):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"未知的游戏种类: {value}") from None


class MinesPhase(Enum):
    """Mines游戏阶段"""
    IDLE = auto()
    ACTIVE = auto()
    GAMEOVER = auto()
    CASHED_OUT = auto()


class PlinkoPhase(Enum):
    """Plinko单个小球的阶段"""
    IDLE = auto()
    FALLING = auto()
    LANDED = auto()


class BlackjackPhase(Enum):
    """Blackjack游戏阶段"""
    IDLE = auto()
    PLAYER_TURN = auto()
    DEALER_TURN = auto()
    SETTLED = auto()


class PokerPhase(Enum):
    """Video Poker游戏阶段"""
    IDLE = auto()
    DEALT = auto()
    SETTLED = auto()


class RoundStatus(Enum):
    """回合生命周期: CREATED -> IN_PROGRESS -> SETTLED"""
    CREATED = auto()
    IN_PROGRESS = auto()
    SETTLED = auto()


class GameAction(Enum):
    """玩家动作"""
    REVEAL = "reveal"
    CASH_OUT = "cash_out"
    HIT = "hit"
    STAND = "stand"
    TOGGLE_HOLD = "toggle_hold"
    DRAW = "draw"
    STEP_BALL = "step_ball"


@dataclass
class Round:
    """
    一个回合: 从下注到结算.

    回合只能结算一次，结算是唯一产生派彩的时刻.

    Attributes:
        round_id: 回合唯一标识
        kind: 游戏种类
        stake: 下注金额
        status: 生命周期状态
        payout: 结算派彩（未结算时为0）
        multiplier: 结算倍率
        outcome: 游戏相关的结果数据
        created_at: 创建时间戳
        settled_at: 结算时间戳
    """
    kind: GameKind
    stake: int
    round_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RoundStatus = RoundStatus.CREATED
    payout: int = 0
    multiplier: float = 0.0
    outcome: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    settled_at: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.stake, int) or self.stake <= 0:
            raise InvalidStakeError(f"下注金额必须为正整数，实际: {self.stake}")

    @property
    def is_settled(self) -> bool:
        return self.status == RoundStatus.SETTLED

    @property
    def net_delta(self) -> int:
        """本回合对余额的净影响（未结算时只计下注）"""
        return self.payout - self.stake

    def begin(self) -> None:
        """CREATED -> IN_PROGRESS"""
        if self.status == RoundStatus.CREATED:
            self.status = RoundStatus.IN_PROGRESS

    def settle(self, payout: int, multiplier: float, **outcome: Any) -> None:
        """
        结算回合

        Args:
            payout: 派彩金额（非负）
            multiplier: 结算倍率
            **outcome: 附加结果数据

        Raises:
            RoundAlreadySettledError: 当回合已经结算过
            ValueError: 当派彩为负数
        """
        if self.is_settled:
            raise RoundAlreadySettledError(f"回合 {self.round_id} 已经结算")
        if payout < 0:
            raise ValueError(f"派彩不能为负数: {payout}")
        self.payout = payout
        self.multiplier = multiplier
        self.outcome.update(outcome)
        self.status = RoundStatus.SETTLED
        self.settled_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round_id': self.round_id,
            'kind': self.kind.value,
            'stake': self.stake,
            'status': self.status.name,
            'payout': self.payout,
            'multiplier': self.multiplier,
            'outcome': dict(self.outcome),
        }
