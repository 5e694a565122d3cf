"""
蒙特卡洛模拟

用固定的简单策略反复游玩某个游戏，统计返还率、命中率和倍率分布.
不经过余额协议，只统计每回合的下注与派彩.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Union

from .eval.blackjack_evaluator import DEALER_STAND_VALUE
from .eval.types import PokerHand
from .rng import RandomSource, create_rng
from .state_machine import (
    BaseGame,
    BlackjackGame,
    GameFactory,
    GameKind,
    MinesGame,
    PlinkoGame,
    PokerGame,
)

__all__ = ['SimulationResult', 'simulate']

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """模拟结果"""
    kind: GameKind
    rounds: int
    total_staked: int
    total_paid: int
    hit_rate: float          # 派彩>0的回合比例
    max_multiplier: float
    distribution: Dict[str, int] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def rtp(self) -> float:
        """返还率 = 总派彩 / 总下注"""
        return self.total_paid / self.total_staked if self.total_staked else 0.0

    @property
    def house_edge(self) -> float:
        return 1 - self.rtp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "rounds": self.rounds,
            "total_staked": self.total_staked,
            "total_paid": self.total_paid,
            "rtp": round(self.rtp, 4),
            "house_edge": round(self.house_edge, 4),
            "hit_rate": round(self.hit_rate, 4),
            "max_multiplier": round(self.max_multiplier, 2),
            "distribution": self.distribution,
            "options": self.options,
        }


def _bucket(multiplier: float) -> str:
    if multiplier == 0:
        return "0x"
    if multiplier < 1:
        return "<1x"
    if multiplier < 2:
        return "1-2x"
    if multiplier < 5:
        return "2-5x"
    if multiplier < 10:
        return "5-10x"
    if multiplier < 50:
        return "10-50x"
    if multiplier < 100:
        return "50-100x"
    return "100x+"


def _play_mines(game: MinesGame, rng: RandomSource, reveals: int = 3, **_: Any) -> None:
    cells = list(range(game.grid_size))
    rng.shuffle(cells)
    for cell in cells[:reveals]:
        if not game.reveal(cell):
            break
    game.cash_out()


def _play_plinko(game: PlinkoGame, rng: RandomSource, **_: Any) -> None:
    game.drop(game.current_round.round_id)
    game.discard_landed()


def _play_blackjack(game: BlackjackGame, rng: RandomSource, hit_below: int = DEALER_STAND_VALUE, **_: Any) -> None:
    while game.player_value.total < hit_below:
        if not game.hit():
            break
    game.stand()
    game.play_dealer()


def _play_poker(game: PokerGame, rng: RandomSource, **_: Any) -> None:
    dealt = game.evaluator.classify(game.hand)
    if dealt.hand >= PokerHand.STRAIGHT:
        keep = set(range(game.HAND_SIZE))
    else:
        counts = Counter(card.numeric_value for card in game.hand)
        keep = {i for i, card in enumerate(game.hand) if counts[card.numeric_value] >= 2}
    for index in keep:
        game.toggle_hold(index)
    game.draw()


_STRATEGIES: Dict[GameKind, Callable[..., None]] = {
    GameKind.MINES: _play_mines,
    GameKind.PLINKO: _play_plinko,
    GameKind.BLACKJACK: _play_blackjack,
    GameKind.POKER: _play_poker,
}

_START_OPTIONS = {
    GameKind.MINES: ("mine_count",),
    GameKind.PLINKO: ("rows", "risk"),
}


def simulate(kind: Union[GameKind, str], rounds: int = 10_000, seed: int = 42,
             stake: int = 100, **options: Any) -> SimulationResult:
    """
    运行蒙特卡洛模拟

    Args:
        kind: 游戏种类
        rounds: 回合数
        seed: 随机种子
        stake: 每回合下注
        **options: 开局参数（mine_count、rows、risk）和策略参数（reveals、hit_below）

    Returns:
        SimulationResult: 模拟结果

    Raises:
        ValueError: 当回合数或参数无效时
    """
    if rounds <= 0:
        raise ValueError(f"回合数必须为正数: {rounds}")
    game_kind = GameKind.parse(kind)
    rng = create_rng(seed)
    game: BaseGame = GameFactory.create_game(game_kind, rng=rng)
    start_options = {k: v for k, v in options.items() if k in _START_OPTIONS.get(game_kind, ())}
    strategy_options = {k: v for k, v in options.items() if k not in start_options}
    play = _STRATEGIES[game_kind]

    total_paid = 0
    hits = 0
    max_multiplier = 0.0
    buckets: Counter = Counter()

    for _ in range(rounds):
        if not game.start(stake, **start_options):
            raise ValueError(f"无法开始回合: {game.last_error.message if game.last_error else '未知原因'}")
        play(game, rng, **strategy_options)
        for settled in game.pop_settled_rounds():
            total_paid += settled.payout
            if settled.payout > 0:
                hits += 1
            multiplier = settled.payout / settled.stake
            max_multiplier = max(max_multiplier, multiplier)
            buckets[_bucket(multiplier)] += 1

    result = SimulationResult(
        kind=game_kind,
        rounds=rounds,
        total_staked=stake * rounds,
        total_paid=total_paid,
        hit_rate=hits / rounds,
        max_multiplier=max_multiplier,
        distribution=dict(buckets),
        options=dict(options),
    )
    logger.info(f"[模拟] {game_kind.value} {rounds}回合: RTP {result.rtp:.4f}, 命中率 {result.hit_rate:.4f}")
    return result
