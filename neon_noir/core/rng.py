"""
随机源.

所有评估器和状态机都通过RandomSource协议获取随机数，
默认实现为标准库的random.Random（非加密、可设定种子），以支持确定性测试.
"""

import random
from typing import Any, List, MutableSequence, Optional, Protocol, Sequence

__all__ = ['RandomSource', 'create_rng']


class RandomSource(Protocol):
    """随机源协议，random.Random天然满足该协议"""

    def random(self) -> float:
        """返回[0, 1)区间的浮点数"""
        ...

    def randrange(self, start: int, stop: Optional[int] = None, step: int = 1) -> int:
        """返回区间内的随机整数"""
        ...

    def sample(self, population: Sequence[Any], k: int) -> List[Any]:
        """无放回抽样"""
        ...

    def shuffle(self, x: MutableSequence[Any]) -> None:
        """原地洗牌"""
        ...


def create_rng(seed: Optional[int] = None) -> random.Random:
    """
    创建随机源.

    Args:
        seed: 随机种子，为None时使用系统熵

    Returns:
        random.Random: 随机数生成器
    """
    return random.Random(seed)
