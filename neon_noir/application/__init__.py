"""
Application Layer - 应用服务层

提供结果类型、配置服务和日志初始化.
大厅控制器位于 neon_noir.application.lobby_service，它依赖服务层端口，
因此不在此处导入.
"""

from .types import ResultStatus, CommandResult, QueryResult
from .config_service import (
    ConfigType,
    CasinoRulesConfig,
    PlinkoPhysicsConfig,
    InsightConfig,
    LoggingConfig,
    ConfigService,
    get_config_service,
)
from .logging_setup import configure_logging

__all__ = [
    'ResultStatus',
    'CommandResult',
    'QueryResult',
    'ConfigType',
    'CasinoRulesConfig',
    'PlinkoPhysicsConfig',
    'InsightConfig',
    'LoggingConfig',
    'ConfigService',
    'get_config_service',
    'configure_logging',
]
