"""
Video Poker牌型评估器.

对恰好5张牌做确定性的牌型分类（Jacks or Better规则）.
"""

from collections import Counter
from typing import List, Sequence

from ..deck.card import Card
from ..deck.types import Rank
from .types import PokerHand, PokerHandResult


class PokerEvaluator:
    """
    Video Poker牌型评估器.

    按严格优先级分类: 皇家同花顺 > 同花顺 > 四条 > 葫芦 > 同花 > 顺子 > 三条
    > 两对 > J或以上的一对 > 无牌型.

    Examples:
        >>> evaluator = PokerEvaluator()
        >>> cards = [Card.from_str(s) for s in ("10S", "JS", "QS", "KS", "AS")]
        >>> evaluator.classify(cards).hand
        <PokerHand.ROYAL_FLUSH: 9>
    """

    HAND_SIZE = 5
    MIN_PAIR_VALUE = Rank.JACK.value

    def __init__(self, ace_low_straights: bool = False):
        """
        Args:
            ace_low_straights: 是否把A-2-3-4-5视为顺子，默认不识别
        """
        self.ace_low_straights = ace_low_straights

    def classify(self, cards: Sequence[Card]) -> PokerHandResult:
        """
        评估5张牌的牌型.

        Args:
            cards: 恰好5张牌

        Returns:
            PokerHandResult: 牌型评估结果

        Raises:
            TypeError: 当输入包含非Card对象时
            ValueError: 当牌数不是5或存在重复牌时
        """
        if len(cards) != self.HAND_SIZE:
            raise ValueError(f"必须是5张牌，实际: {len(cards)}")
        for i, card in enumerate(cards):
            if not isinstance(card, Card):
                raise TypeError(f"第{i}张牌必须是Card类型，实际: {type(card)}")
        if len(set(cards)) != self.HAND_SIZE:
            raise ValueError("手牌中存在重复的牌")

        values = sorted(card.numeric_value for card in cards)
        rank_counts = Counter(values)
        counts = sorted(rank_counts.values(), reverse=True)

        is_flush = len({card.suit for card in cards}) == 1
        is_straight = self._check_straight(values)
        result_values = tuple(values)

        if is_flush and is_straight and values[0] == Rank.TEN.value:
            return PokerHandResult(PokerHand.ROYAL_FLUSH, result_values)
        if is_flush and is_straight:
            return PokerHandResult(PokerHand.STRAIGHT_FLUSH, result_values)
        if counts[0] == 4:
            return PokerHandResult(PokerHand.FOUR_OF_A_KIND, result_values)
        if counts[0] == 3 and counts[1] == 2:
            return PokerHandResult(PokerHand.FULL_HOUSE, result_values)
        if is_flush:
            return PokerHandResult(PokerHand.FLUSH, result_values)
        if is_straight:
            return PokerHandResult(PokerHand.STRAIGHT, result_values)
        if counts[0] == 3:
            return PokerHandResult(PokerHand.THREE_OF_A_KIND, result_values)
        if counts[0] == 2 and counts[1] == 2:
            return PokerHandResult(PokerHand.TWO_PAIR, result_values)
        if counts[0] == 2:
            pair_value = next(v for v, c in rank_counts.items() if c == 2)
            if pair_value >= self.MIN_PAIR_VALUE:
                return PokerHandResult(PokerHand.JACKS_OR_BETTER, result_values, pair_value)

        return PokerHandResult(PokerHand.NOTHING, result_values)

    def _check_straight(self, values: List[int]) -> bool:
        """
        检查升序牌值是否为五张连续无间隔的顺子.

        Args:
            values: 升序排列的5个牌值
        """
        if all(values[i] == values[i - 1] + 1 for i in range(1, len(values))):
            return True
        # A-2-3-4-5
        if self.ace_low_straights and values == [2, 3, 4, 5, 14]:
            return True
        return False
