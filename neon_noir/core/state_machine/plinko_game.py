"""
Plinko游戏状态机

每次start生成一个独立的小球回合，多个小球可以同时在空中.
单个小球: IDLE --start--> FALLING --step_ball(落地或超时)--> LANDED
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Union

from ..eval.plinko_physics import BallState, PlinkoBoard, landing_bucket, spawn_ball, step_ball
from ..exceptions import InvalidActionError, InvalidTransitionError
from ..payout.tables import (
    PLINKO_MAX_ROWS,
    PLINKO_MIN_ROWS,
    RiskLevel,
    apply_multiplier,
    plinko_multipliers,
)
from ..rng import RandomSource, create_rng
from .base_game import BaseGame
from .types import GameAction, GameKind, PlinkoPhase, Round

__all__ = ['PlinkoBall', 'PlinkoGame']

logger = logging.getLogger(__name__)


@dataclass
class PlinkoBall:
    """空中的一个小球及其回合"""
    round: Round
    board: PlinkoBoard
    risk: RiskLevel
    state: BallState
    rng: RandomSource
    phase: PlinkoPhase = PlinkoPhase.FALLING
    bucket: Optional[int] = None

    @property
    def ball_id(self) -> str:
        return self.round.round_id


class PlinkoGame(BaseGame):
    """Plinko: 小球穿过钉阵落入底部分桶，按桶倍率派彩"""

    kind = GameKind.PLINKO
    initial_phase = PlinkoPhase.IDLE
    terminal_phases = ()
    # 游戏本身始终处于IDLE，下表约束单个小球的阶段
    valid_transitions = {
        PlinkoPhase.IDLE: [PlinkoPhase.FALLING],
        PlinkoPhase.FALLING: [PlinkoPhase.LANDED],
        PlinkoPhase.LANDED: [],
    }

    DEFAULT_TICK_BUDGET = 5000

    def __init__(self, rng: Optional[RandomSource] = None, min_stake: int = 1,
                 board: Optional[PlinkoBoard] = None,
                 rows: int = PLINKO_MAX_ROWS,
                 risk: Union[str, RiskLevel] = RiskLevel.MEDIUM,
                 tick_budget: int = DEFAULT_TICK_BUDGET):
        """
        Args:
            rng: 随机源
            min_stake: 最低下注
            board: 物理参数模板，行数按每个小球覆盖
            rows: 默认行数
            risk: 默认风险等级
            tick_budget: 单个小球最多模拟的帧数，超出按"未接触"零派彩结算
        """
        super().__init__(rng, min_stake)
        self._board_template = board or PlinkoBoard()
        self.default_rows = rows
        self.default_risk = RiskLevel.parse(risk)
        self.tick_budget = tick_budget
        self._balls: Dict[str, PlinkoBall] = {}

    @property
    def in_flight(self) -> List[str]:
        """仍在下落的小球ID"""
        return [ball_id for ball_id, ball in self._balls.items() if ball.phase == PlinkoPhase.FALLING]

    def get_ball(self, ball_id: str) -> Optional[PlinkoBall]:
        return self._balls.get(ball_id)

    def _on_start(self, stake: int, rows: Optional[int] = None,
                  risk: Union[str, RiskLevel, None] = None, seed: Optional[int] = None,
                  **options: Any) -> None:
        rows = self.default_rows if rows is None else rows
        if not isinstance(rows, int) or not PLINKO_MIN_ROWS <= rows <= PLINKO_MAX_ROWS:
            raise InvalidActionError(f"行数必须在{PLINKO_MIN_ROWS}-{PLINKO_MAX_ROWS}之间，实际: {rows}")
        try:
            risk_level = self.default_risk if risk is None else RiskLevel.parse(risk)
        except ValueError as e:
            raise InvalidActionError(str(e)) from None

        board = replace(self._board_template, rows=rows)
        # 每个小球独立的随机流，轨迹与其它小球的推进顺序无关
        ball_rng = create_rng(seed if seed is not None else self._rng.randrange(2 ** 63))
        game_round = self.open_round(stake)
        game_round.outcome.update({'rows': rows, 'risk': risk_level.value})
        ball = PlinkoBall(
            round=game_round,
            board=board,
            risk=risk_level,
            state=spawn_ball(board, ball_rng),
            rng=ball_rng,
            phase=PlinkoPhase.IDLE,
        )
        self._transition_ball(ball, PlinkoPhase.FALLING, "start")
        self._balls[ball.ball_id] = ball
        logger.info(f"[Plinko] 发射小球 {ball.ball_id[:8]}: 下注 {stake}, {rows}行, 风险 {risk_level.value}")

    def _action_handlers(self) -> Dict[GameAction, Callable[..., None]]:
        return {GameAction.STEP_BALL: self._step_ball}

    def step_ball(self, ball_id: str) -> bool:
        """推进小球一帧，落地时结算；非法时无操作并返回False"""
        return self.act(GameAction.STEP_BALL, ball_id=ball_id)

    def _step_ball(self, ball_id: str) -> None:
        """
        推进一帧

        Raises:
            InvalidActionError: 当小球不存在
            InvalidTransitionError: 当小球已落地
        """
        ball = self._balls.get(ball_id)
        if ball is None:
            raise InvalidActionError(f"未知的小球: {ball_id}")
        if ball.phase != PlinkoPhase.FALLING:
            raise InvalidTransitionError(f"小球 {ball_id[:8]} 已经落地")

        ball.state = step_ball(ball.state, ball.board, ball.rng)

        if ball.state.has_landed(ball.board):
            bucket = landing_bucket(ball.state.x, ball.board)
            multiplier = plinko_multipliers(ball.board.rows, ball.risk)[bucket]
            ball.bucket = bucket
            self._transition_ball(ball, PlinkoPhase.LANDED, f"bucket {bucket}")
            self.settle_round(
                ball.round,
                apply_multiplier(ball.round.stake, multiplier),
                multiplier,
                bucket=bucket,
                ticks=ball.state.ticks,
            )
        elif ball.state.ticks >= self.tick_budget:
            logger.warning(f"[Plinko] 小球 {ball_id[:8]} 超过 {self.tick_budget} 帧仍未落地，按未接触结算")
            self._transition_ball(ball, PlinkoPhase.LANDED, "no contact")
            self.settle_round(ball.round, 0, 0.0, bucket=None, ticks=ball.state.ticks, no_contact=True)

    def drop(self, ball_id: str) -> Optional[Round]:
        """把小球一直推进到结算，返回结算后的回合"""
        ball = self._balls.get(ball_id)
        if ball is None:
            return None
        while ball.phase == PlinkoPhase.FALLING:
            if not self.step_ball(ball_id):
                break
        return ball.round

    def discard_landed(self) -> int:
        """清理已落地的小球，返回清理数量"""
        landed = [ball_id for ball_id, ball in self._balls.items() if ball.phase == PlinkoPhase.LANDED]
        for ball_id in landed:
            del self._balls[ball_id]
        return len(landed)

    def _transition_ball(self, ball: PlinkoBall, target: PlinkoPhase, reason: str) -> None:
        if target not in self.valid_transitions.get(ball.phase, []):
            raise InvalidTransitionError(f"小球不能从 {ball.phase.name} 转换到 {target.name}")
        self._transition_history.append({
            'from': ball.phase,
            'to': target,
            'reason': reason,
            'round_id': ball.ball_id,
        })
        ball.phase = target
