"""
Blackjack手牌评估器.
"""

from typing import Sequence

from ..deck.card import Card
from .types import BlackjackHandValue

__all__ = ['evaluate_blackjack_hand', 'DEALER_STAND_VALUE']

DEALER_STAND_VALUE = 17


def evaluate_blackjack_hand(cards: Sequence[Card]) -> BlackjackHandValue:
    """
    计算Blackjack手牌点数.

    人头牌计10，A默认计11；总点数超过21时逐张把A降为1，
    直到不超过21或A用尽.

    Args:
        cards: 手牌

    Returns:
        BlackjackHandValue: 点数结果

    Raises:
        TypeError: 当手牌中包含非Card对象时
    """
    total = 0
    aces = 0
    for i, card in enumerate(cards):
        if not isinstance(card, Card):
            raise TypeError(f"第{i}张牌必须是Card类型，实际: {type(card)}")
        total += card.blackjack_value
        if card.is_ace:
            aces += 1

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return BlackjackHandValue(total=total, card_count=len(cards), soft=aces > 0)
