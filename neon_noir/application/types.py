"""
应用层结果类型

大厅的命令和查询都返回结果对象，而不是把核心层异常抛给调用方:
成功时携带数据，失败时携带与NeonNoirError.error_code一致的错误码.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar
from enum import Enum, auto

from ..core.exceptions import NeonNoirError

__all__ = ['ResultStatus', 'CommandResult', 'QueryResult']

T = TypeVar('T')


class ResultStatus(Enum):
    """结果状态"""
    SUCCESS = auto()
    FAILURE = auto()
    VALIDATION_ERROR = auto()           # 游戏拒绝了下注或动作
    BUSINESS_RULE_VIOLATION = auto()    # 会话前置条件不满足


@dataclass(frozen=True)
class _Result:
    success: bool
    status: ResultStatus
    message: str = ""
    error_code: Optional[str] = None

    @classmethod
    def failure_result(cls, message: str, error_code: Optional[str] = None,
                       status: ResultStatus = ResultStatus.FAILURE):
        return cls(success=False, status=status, message=message, error_code=error_code)

    @classmethod
    def validation_error(cls, message: str, error_code: Optional[str] = None):
        return cls.failure_result(message, error_code, ResultStatus.VALIDATION_ERROR)

    @classmethod
    def business_rule_violation(cls, message: str, error_code: Optional[str] = None):
        return cls.failure_result(message, error_code, ResultStatus.BUSINESS_RULE_VIOLATION)

    @classmethod
    def from_error(cls, error: Optional[NeonNoirError], default_message: str = "操作被忽略"):
        """
        把游戏记录的last_error转换为验证错误结果

        Args:
            error: 游戏吞掉的核心层异常，可能为None
            default_message: 没有异常记录时的提示
        """
        if error is None:
            return cls.validation_error(default_message)
        return cls.validation_error(error.message, error.error_code)


@dataclass(frozen=True)
class CommandResult(_Result):
    """命令结果，data为回合或会话的字典视图"""
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def success_result(cls, message: str = "操作成功", data: Optional[Dict[str, Any]] = None) -> 'CommandResult':
        return cls(success=True, status=ResultStatus.SUCCESS, message=message, data=data)


@dataclass(frozen=True)
class QueryResult(_Result, Generic[T]):
    """查询结果"""
    data: Optional[T] = None

    @classmethod
    def success_result(cls, data: T, message: str = "查询成功") -> 'QueryResult[T]':
        return cls(success=True, status=ResultStatus.SUCCESS, message=message, data=data)
