"""
核心层异常定义.

核心层内部使用异常表达非法操作，但所有游戏操作都会在自身边界处捕获这些异常，
转换为无操作(no-op)返回，不会抛出到调用方.
"""

from typing import Optional

__all__ = [
    'NeonNoirError',
    'InvalidStakeError',
    'InvalidTransitionError',
    'RoundAlreadySettledError',
    'InvalidActionError',
]


class NeonNoirError(Exception):
    """所有NEON NOIR异常的基类"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class InvalidStakeError(NeonNoirError):
    """下注金额无效（<=0、低于最低下注或超过余额）"""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_STAKE")


class InvalidTransitionError(NeonNoirError):
    """当前状态不接受该操作"""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_TRANSITION")


class RoundAlreadySettledError(NeonNoirError):
    """回合已经结算过一次"""

    def __init__(self, message: str):
        super().__init__(message, "ROUND_ALREADY_SETTLED")


class InvalidActionError(NeonNoirError):
    """操作参数无效（未知动作、越界格子、非法地雷数等）"""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_ACTION")
