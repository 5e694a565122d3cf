"""
Mines游戏状态机

IDLE --start(stake, mine_count)--> ACTIVE
ACTIVE --reveal(安全)--> ACTIVE
ACTIVE --reveal(地雷)--> GAMEOVER
ACTIVE --cash_out--> CASHED_OUT
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from ..eval.mines_evaluator import (
    MINES_GRID_SIZE,
    RevealOutcome,
    evaluate_reveal,
    generate_mine_set,
)
from ..exceptions import InvalidActionError
from ..payout.tables import DEFAULT_MINES_HOUSE_EDGE, apply_multiplier, next_mines_multiplier
from ..rng import RandomSource
from .base_game import BaseGame
from .types import GameAction, GameKind, MinesPhase

__all__ = ['MinesGame']

logger = logging.getLogger(__name__)


class MinesGame(BaseGame):
    """Mines: 在5x5网格中逐格揭示，避开地雷并随时兑现当前倍率"""

    kind = GameKind.MINES
    initial_phase = MinesPhase.IDLE
    terminal_phases = (MinesPhase.GAMEOVER, MinesPhase.CASHED_OUT)
    valid_transitions = {
        MinesPhase.IDLE: [MinesPhase.ACTIVE],
        MinesPhase.ACTIVE: [MinesPhase.GAMEOVER, MinesPhase.CASHED_OUT],
        MinesPhase.GAMEOVER: [MinesPhase.ACTIVE],
        MinesPhase.CASHED_OUT: [MinesPhase.ACTIVE],
    }

    DEFAULT_MINE_COUNT = 3

    def __init__(self, rng: Optional[RandomSource] = None, min_stake: int = 1,
                 house_edge: float = DEFAULT_MINES_HOUSE_EDGE,
                 grid_size: int = MINES_GRID_SIZE,
                 min_mines: int = 1, max_mines: Optional[int] = None):
        """
        Args:
            rng: 随机源
            min_stake: 最低下注
            house_edge: 庄家优势系数
            grid_size: 网格格数
            min_mines: 最少地雷数
            max_mines: 最多地雷数，默认grid_size-1
        """
        super().__init__(rng, min_stake)
        self.house_edge = house_edge
        self.grid_size = grid_size
        self.min_mines = max(1, min_mines)
        self.max_mines = min(grid_size - 1, max_mines if max_mines is not None else grid_size - 1)
        self._mine_set: FrozenSet[int] = frozenset()
        self._revealed: List[int] = []
        self._mine_count = 0
        self._multiplier = 1.0

    @property
    def mine_set(self) -> FrozenSet[int]:
        return self._mine_set

    @property
    def mine_count(self) -> int:
        return self._mine_count

    @property
    def revealed_cells(self) -> List[int]:
        return list(self._revealed)

    @property
    def safe_reveals(self) -> int:
        return len(self._revealed)

    @property
    def multiplier(self) -> float:
        """当前可兑现倍率"""
        return self._multiplier

    @property
    def potential_payout(self) -> int:
        """如果现在兑现可获得的派彩"""
        if self._phase != MinesPhase.ACTIVE:
            return 0
        return apply_multiplier(self._current_round.stake, self._multiplier)

    def _on_start(self, stake: int, mine_count: int = DEFAULT_MINE_COUNT, **options: Any) -> None:
        if not isinstance(mine_count, int) or not self.min_mines <= mine_count <= self.max_mines:
            raise InvalidActionError(
                f"地雷数量必须在{self.min_mines}-{self.max_mines}之间，实际: {mine_count}"
            )
        self._mine_count = mine_count
        self._mine_set = generate_mine_set(mine_count, self._rng, self.grid_size)
        self._revealed = []
        self._multiplier = 1.0
        game_round = self.open_round(stake)
        self.transition_to(MinesPhase.ACTIVE, "start")
        game_round.outcome['mine_count'] = mine_count
        logger.info(f"[Mines] 新回合 {game_round.round_id[:8]}: 下注 {stake}, 地雷 {mine_count}")

    def _action_handlers(self) -> Dict[GameAction, Callable[..., None]]:
        return {
            GameAction.REVEAL: self._reveal,
            GameAction.CASH_OUT: self._cash_out,
        }

    def reveal(self, cell: int) -> bool:
        """揭示一个格子，非法时无操作并返回False"""
        return self.act(GameAction.REVEAL, cell=cell)

    def cash_out(self) -> bool:
        """兑现当前倍率，非法时无操作并返回False"""
        return self.act(GameAction.CASH_OUT)

    def _reveal(self, cell: int) -> None:
        """
        揭示一个格子

        Args:
            cell: 格子索引 [0, grid_size)

        Raises:
            InvalidTransitionError: 当不处于ACTIVE阶段
            InvalidActionError: 当格子越界或已揭示
        """
        self.require_phase(MinesPhase.ACTIVE)
        if not isinstance(cell, int) or not 0 <= cell < self.grid_size:
            raise InvalidActionError(f"格子索引越界: {cell}")
        if cell in self._revealed:
            raise InvalidActionError(f"格子 {cell} 已经揭示")

        if evaluate_reveal(cell, self._mine_set) == RevealOutcome.HAZARD:
            self.transition_to(MinesPhase.GAMEOVER, f"hazard@{cell}")
            self._multiplier = 0.0
            self.settle_round(
                self._current_round, 0, 0.0,
                hit_cell=cell,
                revealed=list(self._revealed),
                mine_set=sorted(self._mine_set),
            )
            return

        self._multiplier = next_mines_multiplier(
            self._multiplier, len(self._revealed), self._mine_count,
            self.house_edge, self.grid_size,
        )
        self._revealed.append(cell)

        if len(self._revealed) == self.grid_size - self._mine_count:
            logger.info("[Mines] 所有安全格已揭示，自动兑现")
            self._cash_out()

    def _cash_out(self) -> None:
        """
        以当前倍率兑现（零次揭示时原额退还）

        Raises:
            InvalidTransitionError: 当不处于ACTIVE阶段
        """
        self.require_phase(MinesPhase.ACTIVE)
        self.transition_to(MinesPhase.CASHED_OUT, "cash_out")
        game_round = self._current_round
        self.settle_round(
            game_round,
            apply_multiplier(game_round.stake, self._multiplier),
            self._multiplier,
            revealed=list(self._revealed),
            mine_set=sorted(self._mine_set),
        )
