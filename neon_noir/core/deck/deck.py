"""
扑克牌组管理.

定义Deck类，每个回合创建并洗好一副新牌，发牌即从牌堆顶部弹出，
同一回合内不会出现重复的牌.
"""

from typing import List, Optional

from ..rng import RandomSource, create_rng
from .card import Card
from .types import get_all_suits, get_all_ranks


class Deck:
    """
    表示一副扑克牌.

    Attributes:
        _cards: 当前牌组中的牌列表（列表末尾为牌堆顶部）
        _dealt: 本副牌已发出的牌
        _rng: 随机数生成器

    Examples:
        >>> deck = Deck.fresh(create_rng(7))
        >>> card = deck.deal_card()
        >>> len(deck)
        51
    """

    FULL_SIZE = 52

    def __init__(self, rng: Optional[RandomSource] = None) -> None:
        """
        初始化牌组（未洗牌）.

        Args:
            rng: 随机数生成器，为None时使用未设种子的random.Random
        """
        self._rng = rng or create_rng()
        self._cards: List[Card] = []
        self._dealt: List[Card] = []
        self._reset_deck()

    @classmethod
    def fresh(cls, rng: Optional[RandomSource] = None) -> 'Deck':
        """创建一副洗好的新牌"""
        deck = cls(rng)
        deck.shuffle()
        return deck

    def _reset_deck(self) -> None:
        """重置牌组为完整的52张牌."""
        self._cards = [
            Card(suit, rank)
            for suit in get_all_suits()
            for rank in get_all_ranks()
        ]
        self._dealt = []

    def shuffle(self) -> None:
        """使用Fisher-Yates洗牌算法随机打乱剩余牌的顺序."""
        self._rng.shuffle(self._cards)

    def deal_card(self) -> Card:
        """
        发一张牌.

        Returns:
            Card: 发出的牌

        Raises:
            IndexError: 当牌组为空时
        """
        if not self._cards:
            raise IndexError("Cannot deal from empty deck")
        card = self._cards.pop()
        self._dealt.append(card)
        return card

    def deal_cards(self, count: int) -> List[Card]:
        """
        发多张牌.

        Args:
            count: 要发的牌数

        Returns:
            List[Card]: 发出的牌列表

        Raises:
            ValueError: 当count为负数时
            IndexError: 当牌组中的牌不足时
        """
        if count < 0:
            raise ValueError("Count must be non-negative")
        if count > len(self._cards):
            raise IndexError(f"Cannot deal {count} cards, only {len(self._cards)} remaining")
        return [self.deal_card() for _ in range(count)]

    @property
    def cards_remaining(self) -> int:
        return len(self._cards)

    @property
    def dealt_cards(self) -> List[Card]:
        """本副牌已发出的牌（副本）"""
        return list(self._dealt)

    def reset(self) -> None:
        """重置牌组为完整的52张牌并清空已发记录."""
        self._reset_deck()

    def __len__(self) -> int:
        return len(self._cards)

    def __repr__(self) -> str:
        return f"Deck(cards_remaining={len(self._cards)})"
