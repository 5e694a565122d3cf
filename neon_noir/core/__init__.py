"""
Core Module - 纯领域逻辑层

核心模块只能依赖其他核心模块，不能依赖应用层或服务层。

Modules:
    rng: 随机源协议
    deck: 牌组管理和发牌逻辑
    payout: 各游戏赔率表
    eval: 牌型评估、扫雷揭示、Plinko落点与物理步进
    state_machine: 各游戏状态机
    balance: 余额增量与乐观镜像
    events: 领域事件系统
    simulation: 蒙特卡洛模拟
"""

__all__ = []
