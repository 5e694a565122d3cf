"""
牌组管理模块.

提供Card和Deck类，Blackjack与Video Poker共用同一副52张标准扑克牌.
"""

from .types import Suit, Rank
from .card import Card
from .deck import Deck

__all__ = ['Suit', 'Rank', 'Card', 'Deck']
