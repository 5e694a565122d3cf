"""
测试辅助工具

RiggedRng: 可以预设牌序和地雷位置的随机源，其余调用委托给带种子的random.Random.
"""

import random
from typing import Any, Iterable, List, MutableSequence, Optional, Sequence, Union

from neon_noir.core.deck import Card


class RiggedRng:
    """
    可操控的随机源

    Args:
        deck_order: 洗牌后依次发出的牌，如 ["AS", "9H", "KD"]
        mine_cells: 生成地雷时返回的格子
        seed: 其余随机调用使用的种子
    """

    def __init__(self, deck_order: Optional[Iterable[Union[str, Card]]] = None,
                 mine_cells: Optional[Iterable[int]] = None, seed: int = 0):
        self._random = random.Random(seed)
        self._deck_order: List[Card] = [
            Card.from_str(c) if isinstance(c, str) else c for c in (deck_order or [])
        ]
        self._mine_cells = list(mine_cells) if mine_cells is not None else None

    def random(self) -> float:
        return self._random.random()

    def randrange(self, start: int, stop: Optional[int] = None, step: int = 1) -> int:
        return self._random.randrange(start, stop, step)

    def sample(self, population: Sequence[Any], k: int) -> List[Any]:
        if self._mine_cells is not None and len(self._mine_cells) == k:
            return list(self._mine_cells)
        return self._random.sample(population, k)

    def shuffle(self, x: MutableSequence[Any]) -> None:
        if not self._deck_order:
            self._random.shuffle(x)
            return
        # 牌堆从末尾发牌，预设的牌倒序放在末尾
        rest = [card for card in x if card not in self._deck_order]
        self._random.shuffle(rest)
        x[:] = rest + list(reversed(self._deck_order))


def cards(*specs: str) -> List[Card]:
    """把字符串批量转换为Card"""
    return [Card.from_str(s) for s in specs]


class RecordingInsightService:
    """记录请求上下文并返回固定文案的洞察服务"""

    def __init__(self, reply: str = "Lucky streak, high roller."):
        self.reply = reply
        self.contexts: List[Any] = []

    async def fetch_weather(self, city: str):
        raise NotImplementedError

    async def fetch_insight(self, context) -> str:
        self.contexts.append(context)
        return self.reply
