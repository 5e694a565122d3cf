"""
结果评估模块.

提供Blackjack点数计算、Video Poker牌型分类、Mines揭示判定以及Plinko物理与落点映射.
"""

from .types import PokerHand, PokerHandResult, BlackjackHandValue
from .blackjack_evaluator import evaluate_blackjack_hand, DEALER_STAND_VALUE
from .poker_evaluator import PokerEvaluator
from .mines_evaluator import RevealOutcome, generate_mine_set, evaluate_reveal
from .plinko_physics import PlinkoBoard, BallState, spawn_ball, step_ball, landing_bucket

__all__ = [
    'PokerHand',
    'PokerHandResult',
    'BlackjackHandValue',
    'evaluate_blackjack_hand',
    'DEALER_STAND_VALUE',
    'PokerEvaluator',
    'RevealOutcome',
    'generate_mine_set',
    'evaluate_reveal',
    'PlinkoBoard',
    'BallState',
    'spawn_ball',
    'step_ball',
    'landing_bucket',
]
