"""
State Machine Module - 游戏状态机

每个游戏是一个显式的小型状态机，通过BaseGame提供统一的
start / act / is_settled / payout 能力.
"""

from .types import (
    GameKind,
    MinesPhase,
    PlinkoPhase,
    BlackjackPhase,
    PokerPhase,
    RoundStatus,
    GameAction,
    Round,
)
from .base_game import BaseGame
from .mines_game import MinesGame
from .plinko_game import PlinkoBall, PlinkoGame
from .blackjack_game import BlackjackGame
from .poker_game import PokerGame
from .game_factory import GameFactory

__all__ = [
    'GameKind',
    'MinesPhase',
    'PlinkoPhase',
    'BlackjackPhase',
    'PokerPhase',
    'RoundStatus',
    'GameAction',
    'Round',
    'BaseGame',
    'MinesGame',
    'PlinkoBall',
    'PlinkoGame',
    'BlackjackGame',
    'PokerGame',
    'GameFactory',
]
