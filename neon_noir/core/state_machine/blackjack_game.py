"""
Blackjack游戏状态机

IDLE --start--> PLAYER_TURN --stand/爆牌--> DEALER_TURN --step()*--> SETTLED
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..deck import Card, Deck
from ..eval.blackjack_evaluator import DEALER_STAND_VALUE, evaluate_blackjack_hand
from ..eval.types import BlackjackHandValue
from ..payout.tables import BLACKJACK_NATURAL_MULTIPLIER, blackjack_payout
from ..rng import RandomSource
from .base_game import BaseGame
from .types import BlackjackPhase, GameAction, GameKind

__all__ = ['BlackjackGame']

logger = logging.getLogger(__name__)


class BlackjackGame(BaseGame):
    """单人对庄家的Blackjack，每回合使用一副新洗的牌"""

    kind = GameKind.BLACKJACK
    initial_phase = BlackjackPhase.IDLE
    terminal_phases = (BlackjackPhase.SETTLED,)
    valid_transitions = {
        BlackjackPhase.IDLE: [BlackjackPhase.PLAYER_TURN],
        BlackjackPhase.PLAYER_TURN: [BlackjackPhase.DEALER_TURN],
        BlackjackPhase.DEALER_TURN: [BlackjackPhase.SETTLED],
        BlackjackPhase.SETTLED: [BlackjackPhase.PLAYER_TURN],
    }

    def __init__(self, rng: Optional[RandomSource] = None, min_stake: int = 1,
                 dealer_stand_value: int = DEALER_STAND_VALUE,
                 natural_multiplier: float = BLACKJACK_NATURAL_MULTIPLIER):
        super().__init__(rng, min_stake)
        self.dealer_stand_value = dealer_stand_value
        self.natural_multiplier = natural_multiplier
        self._deck: Optional[Deck] = None
        self._player_hand: List[Card] = []
        self._dealer_hand: List[Card] = []

    @property
    def deck(self) -> Optional[Deck]:
        return self._deck

    @property
    def player_hand(self) -> List[Card]:
        return list(self._player_hand)

    @property
    def dealer_hand(self) -> List[Card]:
        """庄家完整手牌（包括暗牌）"""
        return list(self._dealer_hand)

    @property
    def dealer_visible_cards(self) -> List[Card]:
        """玩家回合中庄家第二张牌为暗牌"""
        if self._phase == BlackjackPhase.PLAYER_TURN:
            return self._dealer_hand[:1]
        return list(self._dealer_hand)

    @property
    def player_value(self) -> BlackjackHandValue:
        return evaluate_blackjack_hand(self._player_hand)

    @property
    def dealer_value(self) -> BlackjackHandValue:
        return evaluate_blackjack_hand(self._dealer_hand)

    def _on_start(self, stake: int, **options: Any) -> None:
        self._deck = Deck.fresh(self._rng)
        self._player_hand = []
        self._dealer_hand = []
        # 发牌顺序: 玩家、庄家、玩家、庄家
        for _ in range(2):
            self._player_hand.append(self._deck.deal_card())
            self._dealer_hand.append(self._deck.deal_card())
        game_round = self.open_round(stake)
        self.transition_to(BlackjackPhase.PLAYER_TURN, "deal")
        logger.info(
            f"[Blackjack] 新回合 {game_round.round_id[:8]}: 下注 {stake}, "
            f"玩家 {' '.join(str(c) for c in self._player_hand)} ({self.player_value.total})"
        )

    def _action_handlers(self) -> Dict[GameAction, Callable[..., None]]:
        return {
            GameAction.HIT: self._hit,
            GameAction.STAND: self._stand,
        }

    def hit(self) -> bool:
        return self.act(GameAction.HIT)

    def stand(self) -> bool:
        return self.act(GameAction.STAND)

    def step(self) -> bool:
        """庄家推进一步: 点数低于停牌线时摸一张牌，否则结算"""
        return self._guard('step', self._dealer_step)

    def _hit(self) -> None:
        self.require_phase(BlackjackPhase.PLAYER_TURN)
        card = self._deck.deal_card()
        self._player_hand.append(card)
        value = self.player_value
        logger.debug(f"[Blackjack] 玩家要牌 {card} -> {value.total}")
        if value.is_bust:
            self.transition_to(BlackjackPhase.DEALER_TURN, "bust")

    def _stand(self) -> None:
        self.require_phase(BlackjackPhase.PLAYER_TURN)
        self.transition_to(BlackjackPhase.DEALER_TURN, "stand")

    def _dealer_step(self) -> None:
        self.require_phase(BlackjackPhase.DEALER_TURN)
        if not self.player_value.is_bust and self.dealer_value.total < self.dealer_stand_value:
            card = self._deck.deal_card()
            self._dealer_hand.append(card)
            logger.debug(f"[Blackjack] 庄家摸牌 {card} -> {self.dealer_value.total}")
            return
        self._settle()

    def play_dealer(self) -> None:
        """一次性跑完庄家回合"""
        while self._phase == BlackjackPhase.DEALER_TURN:
            if not self.step():
                break

    def _settle(self) -> None:
        player = self.player_value
        dealer = self.dealer_value

        if player.is_bust:
            player_won, push, result = False, False, "bust"
        elif dealer.is_bust or player.total > dealer.total:
            player_won, push, result = True, False, "win"
        elif dealer.total > player.total:
            player_won, push, result = False, False, "dealer"
        else:
            player_won, push, result = False, True, "push"

        natural = player_won and player.is_natural
        stake = self._current_round.stake
        payout = blackjack_payout(stake, player_won, push, natural, self.natural_multiplier)

        self.transition_to(BlackjackPhase.SETTLED, result)
        self.settle_round(
            self._current_round,
            payout,
            payout / stake,
            result=result,
            natural=natural,
            player_total=player.total,
            dealer_total=dealer.total,
            player_hand=[str(c) for c in self._player_hand],
            dealer_hand=[str(c) for c in self._dealer_hand],
        )
