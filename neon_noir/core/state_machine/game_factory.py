"""
游戏工厂

根据游戏种类创建配置好的游戏状态机实例.
"""

from typing import Any, Dict, Optional, Type, Union

from ..rng import RandomSource
from .base_game import BaseGame
from .blackjack_game import BlackjackGame
from .mines_game import MinesGame
from .plinko_game import PlinkoGame
from .poker_game import PokerGame
from .types import GameKind

__all__ = ['GameFactory']


class GameFactory:
    """游戏工厂类"""

    _registry: Dict[GameKind, Type[BaseGame]] = {
        GameKind.MINES: MinesGame,
        GameKind.PLINKO: PlinkoGame,
        GameKind.BLACKJACK: BlackjackGame,
        GameKind.POKER: PokerGame,
    }

    @classmethod
    def create_game(cls, kind: Union[GameKind, str], rng: Optional[RandomSource] = None,
                    **settings: Any) -> BaseGame:
        """
        创建游戏实例

        Args:
            kind: 游戏种类
            rng: 随机源
            **settings: 传给具体游戏构造函数的参数（如min_stake、house_edge）

        Returns:
            BaseGame: 新的游戏实例

        Raises:
            ValueError: 当游戏种类未知时
        """
        game_kind = GameKind.parse(kind)
        return cls._registry[game_kind](rng=rng, **settings)

    @classmethod
    def supported_kinds(cls):
        return list(cls._registry.keys())
