"""
评估结果类型定义.

定义Video Poker牌型、评估结果和Blackjack手牌点数等核心数据结构.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


class PokerHand(IntEnum):
    """
    Video Poker牌型枚举.

    数值越大表示牌型越强，分类时严格按此优先级匹配.
    """

    NOTHING = 0            # 无牌型
    JACKS_OR_BETTER = 1    # J或以上的一对
    TWO_PAIR = 2           # 两对
    THREE_OF_A_KIND = 3    # 三条
    STRAIGHT = 4           # 顺子
    FLUSH = 5              # 同花
    FULL_HOUSE = 6         # 葫芦
    FOUR_OF_A_KIND = 7     # 四条
    STRAIGHT_FLUSH = 8     # 同花顺
    ROYAL_FLUSH = 9        # 皇家同花顺

    @property
    def display_name(self) -> str:
        return self.name.replace('_', ' ')


@dataclass(frozen=True)
class PokerHandResult:
    """
    牌型评估结果.

    Attributes:
        hand: 牌型
        rank_values: 5张牌的牌值，按升序排列
        pair_value: Jacks-or-better中对子的牌值，其它牌型为0

    Examples:
        >>> result = PokerHandResult(PokerHand.JACKS_OR_BETTER, (3, 7, 9, 12, 12), 12)
        >>> result.is_winning
        True
    """

    hand: PokerHand
    rank_values: Tuple[int, ...]
    pair_value: int = 0

    def __post_init__(self) -> None:
        """
        验证评估结果的有效性.

        Raises:
            TypeError: 当牌型类型无效时
            ValueError: 当牌值数据无效时
        """
        if not isinstance(self.hand, PokerHand):
            raise TypeError(f"牌型必须是PokerHand类型，实际: {type(self.hand)}")
        if len(self.rank_values) != 5:
            raise ValueError(f"必须包含5张牌的牌值，实际: {len(self.rank_values)}")
        for value in self.rank_values:
            if value < 2 or value > 14:
                raise ValueError(f"无效的牌值: {value}")

    @property
    def is_winning(self) -> bool:
        return self.hand != PokerHand.NOTHING

    def __str__(self) -> str:
        return self.hand.display_name


@dataclass(frozen=True)
class BlackjackHandValue:
    """
    Blackjack手牌点数.

    Attributes:
        total: 最终点数（A已按需降为1）
        card_count: 手牌张数
        soft: 是否仍有A按11计
    """

    total: int
    card_count: int
    soft: bool = False

    @property
    def is_bust(self) -> bool:
        return self.total > 21

    @property
    def is_natural(self) -> bool:
        """两张牌恰好21点"""
        return self.total == 21 and self.card_count == 2
