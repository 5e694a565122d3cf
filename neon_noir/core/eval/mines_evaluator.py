"""
Mines网格生成与揭示判定.
"""

from enum import Enum, auto
from typing import FrozenSet

from ..rng import RandomSource

__all__ = ['MINES_GRID_SIZE', 'RevealOutcome', 'generate_mine_set', 'evaluate_reveal']

MINES_GRID_SIZE = 25


class RevealOutcome(Enum):
    """揭示结果"""
    SAFE = auto()
    HAZARD = auto()


def generate_mine_set(mine_count: int, rng: RandomSource,
                      grid_size: int = MINES_GRID_SIZE) -> FrozenSet[int]:
    """
    在[0, grid_size)中无放回地均匀抽取mine_count个地雷位置.

    Args:
        mine_count: 地雷数量
        rng: 随机源
        grid_size: 网格大小

    Returns:
        FrozenSet[int]: 地雷格索引集合

    Raises:
        ValueError: 当地雷数量不在1到grid_size-1之间时
    """
    if not 0 < mine_count < grid_size:
        raise ValueError(f"地雷数量必须在1-{grid_size - 1}之间，实际: {mine_count}")
    return frozenset(rng.sample(range(grid_size), mine_count))


def evaluate_reveal(cell: int, mine_set: FrozenSet[int]) -> RevealOutcome:
    """在预先生成的地雷集合中查询揭示结果"""
    return RevealOutcome.HAZARD if cell in mine_set else RevealOutcome.SAFE
