"""
游戏基类

所有游戏共享的状态机骨架: 显式转换表、转换历史、下注校验、
回合结算队列，以及把内部异常转换为无操作(False)的边界方法.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..exceptions import (
    NeonNoirError,
    InvalidActionError,
    InvalidStakeError,
    InvalidTransitionError,
)
from ..rng import RandomSource, create_rng
from .types import GameAction, GameKind, Round

__all__ = ['BaseGame']

logger = logging.getLogger(__name__)


class BaseGame(ABC):
    """
    游戏状态机基类

    子类需要声明:
        kind: 游戏种类
        initial_phase: 初始阶段
        terminal_phases: 终止阶段集合（可从此开始新回合）
        valid_transitions: 阶段转换表
    并实现 _on_start 与 _action_handlers.
    """

    kind: GameKind
    initial_phase: Enum
    terminal_phases: Tuple[Enum, ...] = ()
    valid_transitions: Dict[Enum, List[Enum]] = {}

    def __init__(self, rng: Optional[RandomSource] = None, min_stake: int = 1):
        """
        初始化游戏

        Args:
            rng: 随机源，为None时使用未设种子的random.Random
            min_stake: 最低下注金额
        """
        if min_stake <= 0:
            raise ValueError(f"最低下注必须为正数，实际: {min_stake}")
        self._rng = rng or create_rng()
        self._min_stake = min_stake
        self._phase = self.initial_phase
        self._transition_history: List[Dict[str, Any]] = []
        self._current_round: Optional[Round] = None
        self._settled_queue: List[Round] = []
        self._last_error: Optional[NeonNoirError] = None

    # ── 只读属性 ──────────────────────────────────────────────

    @property
    def phase(self) -> Enum:
        return self._phase

    @property
    def min_stake(self) -> int:
        return self._min_stake

    @property
    def transition_history(self) -> List[Dict[str, Any]]:
        """状态转换历史（副本）"""
        return self._transition_history.copy()

    @property
    def current_round(self) -> Optional[Round]:
        return self._current_round

    @property
    def is_settled(self) -> bool:
        return self._current_round is not None and self._current_round.is_settled

    @property
    def payout(self) -> int:
        """当前回合的派彩，未结算时为0"""
        if self.is_settled:
            return self._current_round.payout
        return 0

    @property
    def last_error(self) -> Optional[NeonNoirError]:
        """最近一次被吞掉的非法操作，供应用层生成错误码"""
        return self._last_error

    def can_start(self) -> bool:
        return self._phase == self.initial_phase or self._phase in self.terminal_phases

    # ── 边界方法: 永不抛出 ────────────────────────────────────

    def start(self, stake: int, balance: Optional[int] = None, **options: Any) -> bool:
        """
        开始新回合

        Args:
            stake: 下注金额
            balance: 当前余额，提供时校验stake不超过余额
            **options: 游戏相关参数（如mine_count、rows、risk）

        Returns:
            bool: 是否成功开始；非法下注或非法状态时为False且无任何状态变化
        """
        return self._guard('start', lambda: self._start(stake, balance, **options))

    def act(self, action: Union[GameAction, str], **params: Any) -> bool:
        """
        执行玩家动作

        Args:
            action: 动作（GameAction或其字符串值）
            **params: 动作参数

        Returns:
            bool: 动作是否生效
        """
        def run():
            try:
                game_action = GameAction(action)
            except ValueError:
                raise InvalidActionError(f"未知动作: {action}") from None
            handler = self._action_handlers().get(game_action)
            if handler is None:
                raise InvalidActionError(f"{self.kind.value} 不支持动作 {game_action.value}")
            try:
                inspect.signature(handler).bind(**params)
            except TypeError as e:
                raise InvalidActionError(f"动作 {game_action.value} 参数无效: {e}") from None
            handler(**params)

        return self._guard(str(getattr(action, 'value', action)), run)

    def pop_settled_rounds(self) -> List[Round]:
        """取出自上次调用以来结算的回合"""
        settled, self._settled_queue = self._settled_queue, []
        return settled

    # ── 子类使用的内部方法 ────────────────────────────────────

    def validate_stake(self, stake: int, balance: Optional[int] = None) -> None:
        """
        校验下注金额

        Raises:
            InvalidStakeError: 当stake<=0、低于最低下注或超过余额时
        """
        if not isinstance(stake, int) or isinstance(stake, bool) or stake <= 0:
            raise InvalidStakeError(f"下注金额必须为正整数，实际: {stake}")
        if stake < self._min_stake:
            raise InvalidStakeError(f"下注金额 {stake} 低于最低下注 {self._min_stake}")
        if balance is not None and stake > balance:
            raise InvalidStakeError(f"下注金额 {stake} 超过余额 {balance}")

    def transition_to(self, target_phase: Enum, reason: str = "") -> None:
        """
        执行到目标阶段的转换

        Raises:
            InvalidTransitionError: 当转换不合法时
        """
        if target_phase not in self.valid_transitions.get(self._phase, []):
            raise InvalidTransitionError(f"不能从 {self._phase.name} 转换到 {target_phase.name}")

        old_phase = self._phase
        self._phase = target_phase
        self._transition_history.append({
            'from': old_phase,
            'to': target_phase,
            'reason': reason,
            'round_id': self._current_round.round_id if self._current_round else None,
        })
        logger.debug(f"[{self.kind.value}] {old_phase.name} -> {target_phase.name} ({reason})")

    def require_phase(self, *phases: Enum) -> None:
        """要求当前处于指定阶段之一"""
        if self._phase not in phases:
            raise InvalidTransitionError(
                f"{self.kind.value} 在 {self._phase.name} 阶段不接受该操作"
            )

    def open_round(self, stake: int) -> Round:
        """创建并登记新回合"""
        game_round = Round(kind=self.kind, stake=stake)
        game_round.begin()
        self._current_round = game_round
        return game_round

    def settle_round(self, game_round: Round, payout: int, multiplier: float, **outcome: Any) -> None:
        """结算回合并放入结算队列"""
        game_round.settle(payout, multiplier, **outcome)
        self._settled_queue.append(game_round)
        logger.info(
            f"[{self.kind.value}] 回合 {game_round.round_id[:8]} 结算: "
            f"下注 {game_round.stake}, 倍率 {multiplier:.4g}, 派彩 {payout}"
        )

    # ── 子类实现 ──────────────────────────────────────────────

    def _start(self, stake: int, balance: Optional[int], **options: Any) -> None:
        if not self.can_start():
            raise InvalidTransitionError(f"{self.kind.value} 在 {self._phase.name} 阶段不能开始新回合")
        self.validate_stake(stake, balance)
        self._on_start(stake, **options)

    @abstractmethod
    def _on_start(self, stake: int, **options: Any) -> None:
        """校验参数、创建回合并进入第一个活动阶段"""

    @abstractmethod
    def _action_handlers(self) -> Dict[GameAction, Callable[..., None]]:
        """动作到处理方法的映射"""

    def _guard(self, operation: str, fn: Callable[[], None]) -> bool:
        try:
            fn()
        except NeonNoirError as e:
            self._last_error = e
            logger.warning(f"[{self.kind.value}] 忽略操作 {operation}: {e.message}")
            return False
        self._last_error = None
        return True
