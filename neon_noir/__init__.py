"""
NEON NOIR - 游戏结果引擎

Mines / Plinko / Blackjack / Video Poker 四款小游戏的随机结果、赔率计算，
以及基于增量(delta)的余额变更协议。

Packages:
    core: 纯领域逻辑（牌组、评估器、赔率表、状态机、余额协议、事件）
    application: 应用服务层（配置、大厅控制器）
    services: 外部协作者端口（账户存储、洞察服务）
"""

__version__ = "1.0.0"
