"""
扑克牌数据结构.

定义不可变的Card类，同时提供Video Poker牌值和Blackjack点数.
"""

from dataclasses import dataclass
from typing import Dict

from .types import Suit, Rank, FACE_RANKS


_RANK_DISPLAY: Dict[Rank, str] = {
    Rank.TWO: "2", Rank.THREE: "3", Rank.FOUR: "4", Rank.FIVE: "5",
    Rank.SIX: "6", Rank.SEVEN: "7", Rank.EIGHT: "8", Rank.NINE: "9",
    Rank.TEN: "10", Rank.JACK: "J", Rank.QUEEN: "Q",
    Rank.KING: "K", Rank.ACE: "A"
}

_SUIT_DISPLAY: Dict[Suit, str] = {
    Suit.SPADES: "S", Suit.HEARTS: "H",
    Suit.CLUBS: "C", Suit.DIAMONDS: "D"
}

_RANK_PARSE: Dict[str, Rank] = {
    "2": Rank.TWO, "3": Rank.THREE, "4": Rank.FOUR, "5": Rank.FIVE,
    "6": Rank.SIX, "7": Rank.SEVEN, "8": Rank.EIGHT, "9": Rank.NINE,
    "10": Rank.TEN, "T": Rank.TEN, "J": Rank.JACK, "Q": Rank.QUEEN,
    "K": Rank.KING, "A": Rank.ACE
}

_SUIT_PARSE: Dict[str, Suit] = {
    "s": Suit.SPADES, "S": Suit.SPADES, "♠": Suit.SPADES,
    "h": Suit.HEARTS, "H": Suit.HEARTS, "♥": Suit.HEARTS,
    "c": Suit.CLUBS, "C": Suit.CLUBS, "♣": Suit.CLUBS,
    "d": Suit.DIAMONDS, "D": Suit.DIAMONDS, "♦": Suit.DIAMONDS,
}


@dataclass(frozen=True)
class Card:
    """
    表示一张扑克牌.

    Attributes:
        suit: 花色
        rank: 点数

    Examples:
        >>> card = Card(Suit.HEARTS, Rank.ACE)
        >>> str(card)
        'AH'
        >>> card.numeric_value
        14
        >>> card.blackjack_value
        11
    """

    suit: Suit
    rank: Rank

    def __post_init__(self) -> None:
        """
        验证扑克牌数据的有效性.

        Raises:
            TypeError: 当花色或点数类型无效时
        """
        if not isinstance(self.suit, Suit):
            raise TypeError(f"花色必须是Suit类型，实际: {type(self.suit)}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"点数必须是Rank类型，实际: {type(self.rank)}")

    @property
    def numeric_value(self) -> int:
        """Video Poker牌值，2-14"""
        return self.rank.value

    @property
    def blackjack_value(self) -> int:
        """
        Blackjack默认点数.

        Returns:
            int: 人头牌为10，A为11（由评估器按需降为1），其余为牌面值
        """
        if self.rank == Rank.ACE:
            return 11
        if self.rank in FACE_RANKS:
            return 10
        return self.rank.value

    @property
    def is_ace(self) -> bool:
        return self.rank == Rank.ACE

    def __str__(self) -> str:
        """
        返回扑克牌的字符串表示.

        Returns:
            str: 格式为"点数花色"的字符串，如"AH"表示红桃A
        """
        return f"{_RANK_DISPLAY[self.rank]}{_SUIT_DISPLAY[self.suit]}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @classmethod
    def from_str(cls, card_str: str) -> 'Card':
        """
        从字符串创建扑克牌对象.

        Args:
            card_str: 扑克牌字符串，格式为"点数花色"，如"AH"、"10s"、"K♠"

        Returns:
            Card: 对应的扑克牌对象

        Raises:
            TypeError: 当输入不是字符串时
            ValueError: 当字符串格式无效时
        """
        if not isinstance(card_str, str):
            raise TypeError(f"输入必须是字符串，实际: {type(card_str)}")

        if len(card_str) < 2:
            raise ValueError(f"卡牌字符串格式错误: {card_str}")

        # 处理10的特殊情况
        if card_str.startswith("10"):
            rank_str, suit_str = "10", card_str[2:]
        else:
            rank_str, suit_str = card_str[0], card_str[1:]

        if rank_str not in _RANK_PARSE:
            raise ValueError(f"无效的点数: {rank_str}")
        if suit_str not in _SUIT_PARSE:
            raise ValueError(f"无效的花色: {suit_str}")

        return cls(_SUIT_PARSE[suit_str], _RANK_PARSE[rank_str])

    def __lt__(self, other: 'Card') -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank.value < other.rank.value
