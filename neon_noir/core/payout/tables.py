"""
各游戏赔率表.

静态配置：Mines逐步倍率、Plinko分桶倍率、Blackjack规则赔付、Video Poker牌型倍率.
所有派彩统一通过apply_multiplier做精确十进制乘法并向下取整.
"""

import math
from decimal import Decimal, ROUND_FLOOR
from enum import Enum
from typing import Dict, List, Tuple, Union

from ..eval.types import PokerHand
from ..eval.mines_evaluator import MINES_GRID_SIZE

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

Number = Union[int, float, Decimal]


def apply_multiplier(stake: int, multiplier: Number) -> int:
    """
    计算派彩: floor(stake * multiplier).

    使用Decimal(str(...))避免浮点误差，例如 100 * 0.29 不会得到 28.

    Args:
        stake: 下注金额
        multiplier: 非负倍率

    Returns:
        int: 向下取整后的派彩
    """
    if multiplier <= 0 or stake <= 0:
        return 0
    product = Decimal(stake) * Decimal(str(multiplier))
    return int(product.to_integral_value(rounding=ROUND_FLOOR))


# ── Mines ─────────────────────────────────────────────────────

DEFAULT_MINES_HOUSE_EDGE = 0.97


def _fair_factor(safe_reveals_before: int, mine_count: int, grid_size: int) -> float:
    """第(safe_reveals_before+1)次安全揭示带来的公平倍率因子"""
    return (grid_size - safe_reveals_before) / (grid_size - mine_count - safe_reveals_before)


def mines_multiplier(safe_reveals: int, mine_count: int,
                     house_edge: float = DEFAULT_MINES_HOUSE_EDGE,
                     grid_size: int = MINES_GRID_SIZE) -> float:
    """
    计算k次安全揭示后的倍率.

    multiplier(k) = edge * Π_{i=0}^{k-1} (N-i)/(N-m-i)，k=0时为1（原额退还）.

    Args:
        safe_reveals: 已揭示的安全格数量k
        mine_count: 地雷数量m
        house_edge: 庄家优势系数（如0.97）
        grid_size: 网格大小N

    Returns:
        float: 当前倍率

    Raises:
        ValueError: 当参数超出范围时
    """
    if not 0 < mine_count < grid_size:
        raise ValueError(f"地雷数量必须在1-{grid_size - 1}之间，实际: {mine_count}")
    if not 0 <= safe_reveals <= grid_size - mine_count:
        raise ValueError(f"安全揭示数超出范围: {safe_reveals}")
    if safe_reveals == 0:
        return 1.0

    fair = 1.0
    for i in range(safe_reveals):
        fair *= _fair_factor(i, mine_count, grid_size)
    return fair * house_edge


def next_mines_multiplier(current: float, safe_reveals_before: int, mine_count: int,
                          house_edge: float = DEFAULT_MINES_HOUSE_EDGE,
                          grid_size: int = MINES_GRID_SIZE) -> float:
    """
    增量计算下一次安全揭示后的倍率.

    Args:
        current: 当前倍率（safe_reveals_before次揭示后）
        safe_reveals_before: 本次揭示之前的安全格数量

    Returns:
        float: 揭示后的新倍率
    """
    factor = _fair_factor(safe_reveals_before, mine_count, grid_size)
    if safe_reveals_before == 0:
        # 首次揭示时引入庄家优势系数
        return current * factor * house_edge
    return current * factor


# ── Plinko ────────────────────────────────────────────────────

class RiskLevel(Enum):
    """Plinko风险等级"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: Union[str, 'RiskLevel']) -> 'RiskLevel':
        """大小写不敏感地解析风险等级"""
        if isinstance(value, RiskLevel):
            return value
        for level in cls:
            if level.value.lower() == str(value).lower() or level.name == str(value).upper():
                return level
        raise ValueError(f"无效的风险等级: {value}")


PLINKO_MIN_ROWS = 8
PLINKO_MAX_ROWS = 16

# 16行(17个桶)基础表：两端最大、中心最小
PLINKO_BASE_MULTIPLIERS: Dict[RiskLevel, Tuple[float, ...]] = {
    RiskLevel.HIGH: (1000, 250, 50, 5, 1, 0.2, 0.1, 0.1, 0.1, 0.1, 0.1, 0.2, 1, 5, 50, 250, 1000),
    RiskLevel.MEDIUM: (110, 33, 8, 2, 0.5, 0.3, 0.2, 0.1, 0.1, 0.1, 0.2, 0.3, 0.5, 2, 8, 33, 110),
    RiskLevel.LOW: (10, 5, 2, 1.1, 0.8, 0.5, 0.3, 0.2, 0.2, 0.2, 0.3, 0.5, 0.8, 1.1, 2, 5, 10),
}


def plinko_multipliers(rows: int, risk: Union[str, RiskLevel]) -> List[float]:
    """
    获取(rows, risk)对应的分桶倍率表.

    从17桶基础表按到最近边缘的距离对称重采样为rows+1个桶，
    保证任意行数下倍率表都关于中心对称.

    Args:
        rows: 钉子行数(8-16)
        risk: 风险等级

    Returns:
        List[float]: 长度为rows+1的倍率列表

    Raises:
        ValueError: 当行数超出范围时
    """
    if not PLINKO_MIN_ROWS <= rows <= PLINKO_MAX_ROWS:
        raise ValueError(f"行数必须在{PLINKO_MIN_ROWS}-{PLINKO_MAX_ROWS}之间，实际: {rows}")

    base = PLINKO_BASE_MULTIPLIERS[RiskLevel.parse(risk)]
    count = rows + 1
    last = len(base) - 1
    result = []
    for i in range(count):
        edge_distance = min(i, count - 1 - i)
        idx = math.floor(edge_distance * last / (count - 1))
        result.append(base[idx])
    return result


# ── Blackjack ─────────────────────────────────────────────────

BLACKJACK_NATURAL_MULTIPLIER = 2.5
BLACKJACK_WIN_MULTIPLIER = 2


def blackjack_payout(stake: int, player_won: bool, push: bool, natural: bool,
                     natural_multiplier: float = BLACKJACK_NATURAL_MULTIPLIER) -> int:
    """
    Blackjack规则赔付.

    Args:
        stake: 下注金额
        player_won: 玩家是否获胜
        push: 是否平局
        natural: 玩家是否为两张牌21点

    Returns:
        int: 派彩（天然21点floor(stake*2.5)，普通胜stake*2，平局退还stake，输为0）
    """
    if push:
        return stake
    if not player_won:
        return 0
    if natural:
        return apply_multiplier(stake, natural_multiplier)
    return stake * BLACKJACK_WIN_MULTIPLIER


# ── Video Poker ───────────────────────────────────────────────

POKER_PAYOUTS: Dict[PokerHand, int] = {
    PokerHand.ROYAL_FLUSH: 250,
    PokerHand.STRAIGHT_FLUSH: 50,
    PokerHand.FOUR_OF_A_KIND: 25,
    PokerHand.FULL_HOUSE: 9,
    PokerHand.FLUSH: 6,
    PokerHand.STRAIGHT: 4,
    PokerHand.THREE_OF_A_KIND: 3,
    PokerHand.TWO_PAIR: 2,
    PokerHand.JACKS_OR_BETTER: 1,
    PokerHand.NOTHING: 0,
}


def poker_multiplier(hand: PokerHand) -> int:
    """牌型对应倍率，赔率表对所有牌型都有定义"""
    return POKER_PAYOUTS[hand]
