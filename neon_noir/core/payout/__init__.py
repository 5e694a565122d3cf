"""
赔率表模块.

提供Mines、Plinko、Blackjack、Video Poker的静态赔率配置与派彩计算.
"""

from .tables import (
    RiskLevel,
    MINES_GRID_SIZE,
    DEFAULT_MINES_HOUSE_EDGE,
    mines_multiplier,
    next_mines_multiplier,
    PLINKO_BASE_MULTIPLIERS,
    PLINKO_MIN_ROWS,
    PLINKO_MAX_ROWS,
    plinko_multipliers,
    BLACKJACK_NATURAL_MULTIPLIER,
    BLACKJACK_WIN_MULTIPLIER,
    blackjack_payout,
    POKER_PAYOUTS,
    poker_multiplier,
    apply_multiplier,
)

__all__ = [
    'RiskLevel',
    'MINES_GRID_SIZE',
    'DEFAULT_MINES_HOUSE_EDGE',
    'mines_multiplier',
    'next_mines_multiplier',
    'PLINKO_BASE_MULTIPLIERS',
    'PLINKO_MIN_ROWS',
    'PLINKO_MAX_ROWS',
    'plinko_multipliers',
    'BLACKJACK_NATURAL_MULTIPLIER',
    'BLACKJACK_WIN_MULTIPLIER',
    'blackjack_payout',
    'POKER_PAYOUTS',
    'poker_multiplier',
    'apply_multiplier',
]
