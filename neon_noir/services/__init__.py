"""
Services - 外部协作方端口

Classes:
    AccountStore / InMemoryAccountStore: 账户与余额存储
    InsightService / GeminiInsightService: 天气与荷官文案
"""

from .account_store import (
    Profile,
    AccountStore,
    AccountNotFoundError,
    RemoteWriteError,
    InMemoryAccountStore,
    DEFAULT_STARTING_BALANCE,
)
from .insight_service import (
    WeatherSnapshot,
    InsightKind,
    InsightContext,
    InsightService,
    InsightServiceError,
    QuotaExhaustedError,
    GeminiInsightService,
)

__all__ = [
    'Profile',
    'AccountStore',
    'AccountNotFoundError',
    'RemoteWriteError',
    'InMemoryAccountStore',
    'DEFAULT_STARTING_BALANCE',
    'WeatherSnapshot',
    'InsightKind',
    'InsightContext',
    'InsightService',
    'InsightServiceError',
    'QuotaExhaustedError',
    'GeminiInsightService',
]
