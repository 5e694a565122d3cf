"""
Video Poker (Jacks or Better) 游戏状态机

IDLE --start--> DEALT --toggle_hold*--> DEALT --draw--> SETTLED
只有一次换牌机会.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..deck import Card, Deck
from ..eval.poker_evaluator import PokerEvaluator
from ..exceptions import InvalidActionError
from ..payout.tables import poker_multiplier
from ..rng import RandomSource
from .base_game import BaseGame
from .types import GameAction, GameKind, PokerPhase

__all__ = ['PokerGame']

logger = logging.getLogger(__name__)


class PokerGame(BaseGame):
    """五张牌换牌扑克"""

    kind = GameKind.POKER
    initial_phase = PokerPhase.IDLE
    terminal_phases = (PokerPhase.SETTLED,)
    valid_transitions = {
        PokerPhase.IDLE: [PokerPhase.DEALT],
        PokerPhase.DEALT: [PokerPhase.SETTLED],
        PokerPhase.SETTLED: [PokerPhase.DEALT],
    }

    HAND_SIZE = 5

    def __init__(self, rng: Optional[RandomSource] = None, min_stake: int = 1,
                 evaluator: Optional[PokerEvaluator] = None):
        super().__init__(rng, min_stake)
        self.evaluator = evaluator or PokerEvaluator()
        self._deck: Optional[Deck] = None
        self._hand: List[Card] = []
        self._holds: List[bool] = [False] * self.HAND_SIZE

    @property
    def deck(self) -> Optional[Deck]:
        return self._deck

    @property
    def hand(self) -> List[Card]:
        return list(self._hand)

    @property
    def holds(self) -> List[bool]:
        return list(self._holds)

    def _on_start(self, stake: int, **options: Any) -> None:
        self._deck = Deck.fresh(self._rng)
        self._hand = self._deck.deal_cards(self.HAND_SIZE)
        self._holds = [False] * self.HAND_SIZE
        game_round = self.open_round(stake)
        self.transition_to(PokerPhase.DEALT, "deal")
        logger.info(
            f"[Poker] 新回合 {game_round.round_id[:8]}: 下注 {stake}, "
            f"手牌 {' '.join(str(c) for c in self._hand)}"
        )

    def _action_handlers(self) -> Dict[GameAction, Callable[..., None]]:
        return {
            GameAction.TOGGLE_HOLD: self._toggle_hold,
            GameAction.DRAW: self._draw,
        }

    def toggle_hold(self, index: int) -> bool:
        return self.act(GameAction.TOGGLE_HOLD, index=index)

    def draw(self) -> bool:
        return self.act(GameAction.DRAW)

    def _toggle_hold(self, index: int) -> None:
        self.require_phase(PokerPhase.DEALT)
        if not isinstance(index, int) or not 0 <= index < self.HAND_SIZE:
            raise InvalidActionError(f"保留位置越界: {index}")
        self._holds[index] = not self._holds[index]

    def _draw(self) -> None:
        self.require_phase(PokerPhase.DEALT)
        self._hand = [
            card if held else self._deck.deal_card()
            for card, held in zip(self._hand, self._holds)
        ]
        result = self.evaluator.classify(self._hand)
        multiplier = poker_multiplier(result.hand)
        stake = self._current_round.stake

        self.transition_to(PokerPhase.SETTLED, result.hand.display_name)
        self.settle_round(
            self._current_round,
            stake * multiplier,
            float(multiplier),
            hand=result.hand.name,
            cards=[str(c) for c in self._hand],
            held=[i for i, held in enumerate(self._holds) if held],
        )
