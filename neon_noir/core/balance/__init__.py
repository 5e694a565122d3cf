"""
Balance Module - 余额变更

Classes:
    BalanceDelta: 有符号余额增量
    BalanceMirror: 本地乐观余额镜像
    BalanceMutationProtocol: 扣款/派彩两阶段协议
"""

from .balance_delta import DeltaType, BalanceDelta
from .balance_mirror import BalanceMirror, BalanceSnapshot
from .mutation_protocol import BalanceStore, BalanceMutationProtocol

__all__ = [
    'DeltaType',
    'BalanceDelta',
    'BalanceMirror',
    'BalanceSnapshot',
    'BalanceStore',
    'BalanceMutationProtocol',
]
