"""
Plinko弹球物理与落点判定.

棋盘使用百分比坐标: x为水平位置[0, 100]，y为竖直位置（向下增大）.
step_ball是纯函数: 输入当前小球状态，返回下一帧状态，由任意调度器驱动.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Tuple

from ..rng import RandomSource

__all__ = ['PlinkoBoard', 'BallState', 'spawn_ball', 'step_ball', 'landing_bucket']


@dataclass(frozen=True)
class PlinkoBoard:
    """
    Plinko棋盘几何与物理参数.

    第r行(0起)有r+3颗钉子，间距peg_spacing，以center_x为中心对称分布.
    最后一行钉子(rows+2颗)的水平范围决定落点分桶.
    """

    rows: int = 16
    gravity: float = 0.0075
    friction: float = 0.985
    bounce: float = 0.58
    min_bounce_force: float = 0.2
    jitter: float = 0.015
    peg_spacing: float = 4.2
    peg_radius: float = 1.3
    row_hit_band: float = 1.0
    vertical_padding: float = 12.0
    peg_area_bottom: float = 85.0
    floor_y: float = 90.0
    center_x: float = 50.0
    wall_left: float = 2.0
    wall_right: float = 98.0
    wall_damping: float = 0.4
    spawn_x_spread: float = 0.001
    spawn_vx_spread: float = 0.005
    spawn_vy: float = 0.04

    def __post_init__(self) -> None:
        if self.rows <= 0:
            raise ValueError(f"行数必须为正数，实际: {self.rows}")

    @property
    def bucket_count(self) -> int:
        return self.rows + 1

    @property
    def vertical_gap(self) -> float:
        return (self.peg_area_bottom - self.vertical_padding) / (self.rows + 1)

    def row_y(self, row: int) -> float:
        return self.vertical_padding + (row + 1) * self.vertical_gap

    def row_pegs(self, row: int) -> List[float]:
        """第row行所有钉子的x坐标"""
        peg_count = row + 3
        start_x = self.center_x - (peg_count - 1) * self.peg_spacing / 2
        return [start_x + p * self.peg_spacing for p in range(peg_count)]

    def landing_extent(self) -> Tuple[float, float]:
        """最后一行钉子的水平范围"""
        width = (self.rows + 1) * self.peg_spacing
        return self.center_x - width / 2, self.center_x + width / 2


@dataclass(frozen=True)
class BallState:
    """小球的瞬时状态"""
    x: float
    y: float
    vx: float
    vy: float
    ticks: int = 0

    def has_landed(self, board: PlinkoBoard) -> bool:
        return self.y > board.floor_y


def spawn_ball(board: PlinkoBoard, rng: RandomSource) -> BallState:
    """在顶部中心附近生成一个带随机水平初速度的小球"""
    return BallState(
        x=board.center_x + (rng.random() - 0.5) * board.spawn_x_spread,
        y=0.0,
        vx=(rng.random() - 0.5) * board.spawn_vx_spread,
        vy=board.spawn_vy,
    )


def step_ball(ball: BallState, board: PlinkoBoard, rng: RandomSource) -> BallState:
    """
    推进一帧: 重力、摩擦、钉子碰撞（带随机抖动）和左右边界.

    Args:
        ball: 当前状态
        board: 棋盘参数
        rng: 随机源，用于碰撞抖动

    Returns:
        BallState: 下一帧状态；已落地的小球原样返回
    """
    if ball.has_landed(board):
        return ball

    x, y, vx, vy = ball.x, ball.y, ball.vx, ball.vy
    vy += board.gravity
    x += vx
    y += vy
    vx *= board.friction

    for row in range(board.rows):
        row_y = board.row_y(row)
        if abs(y - row_y) >= board.row_hit_band:
            continue
        for peg_x in board.row_pegs(row):
            dist = math.hypot(x - peg_x, y - row_y)
            if dist < board.peg_radius:
                angle = math.atan2(y - row_y, x - peg_x)
                force = max(math.hypot(vx, vy) * board.bounce, board.min_bounce_force)
                vx = math.cos(angle) * force + (rng.random() - 0.5) * board.jitter
                vy = max(0.08, math.sin(angle) * force + 0.05)
                x += math.cos(angle) * 0.2
                y += math.sin(angle) * 0.2

    if x < board.wall_left:
        x = board.wall_left
        vx = abs(vx) * board.wall_damping
    if x > board.wall_right:
        x = board.wall_right
        vx = -abs(vx) * board.wall_damping

    return replace(ball, x=x, y=y, vx=vx, vy=vy, ticks=ball.ticks + 1)


def landing_bucket(x: float, board: PlinkoBoard) -> int:
    """
    把连续的水平落点映射为桶索引.

    x先被夹到最后一行钉子的水平范围内，再按bucket_count等宽切分.

    Returns:
        int: [0, bucket_count)内的桶索引
    """
    start_x, end_x = board.landing_extent()
    clamped = max(start_x, min(end_x, x))
    relative = (clamped - start_x) / (end_x - start_x)
    index = math.floor(relative * board.bucket_count)
    return min(board.bucket_count - 1, max(0, index))
