"""
ConfigService - 配置管理服务

负责集中化管理所有配置，包括：
- 娱乐场规则配置（最低下注、地雷数量范围、庄家优势、Blackjack停牌线等）
- Plinko物理配置
- 洞察服务配置（模型、重试、缓存）
- 日志配置

为Application层提供统一的配置查询接口，支持从YAML文件加载覆盖项.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.eval.plinko_physics import PlinkoBoard
from .types import QueryResult


class ConfigType(Enum):
    """配置类型枚举"""
    CASINO_RULES = "casino_rules"
    PLINKO_PHYSICS = "plinko_physics"
    INSIGHT = "insight"
    LOGGING = "logging"


@dataclass
class CasinoRulesConfig:
    """娱乐场规则配置"""
    starting_balance: int = 10000
    min_stakes: Dict[str, int] = field(default_factory=lambda: {
        "mines": 1,
        "plinko": 1,
        "blackjack": 1,
        "poker": 1,
    })
    mines_grid_size: int = 25
    mines_min_count: int = 1
    mines_max_count: int = 24
    mines_default_count: int = 3
    mines_house_edge: float = 0.97
    blackjack_dealer_stand: int = 17
    blackjack_natural_multiplier: float = 2.5
    poker_ace_low_straights: bool = False
    dealer_step_delay: float = 0.8
    remote_write_timeout: Optional[float] = 10.0

    def __post_init__(self):
        """验证规则配置"""
        if self.starting_balance < 0:
            raise ValueError("starting_balance不能为负数")
        if not 0 < self.mines_house_edge <= 1:
            raise ValueError(f"mines_house_edge必须在(0, 1]之间，当前为: {self.mines_house_edge}")
        if not 1 <= self.mines_min_count <= self.mines_max_count < self.mines_grid_size:
            raise ValueError("地雷数量范围无效")
        for game, stake in self.min_stakes.items():
            if stake <= 0:
                raise ValueError(f"{game} 的最低下注必须为正数")

    def min_stake_for(self, game: str) -> int:
        return self.min_stakes.get(game, 1)


@dataclass
class PlinkoPhysicsConfig:
    """Plinko物理配置"""
    default_rows: int = 16
    default_risk: str = "Medium"
    gravity: float = 0.0075
    friction: float = 0.985
    bounce: float = 0.58
    min_bounce_force: float = 0.2
    jitter: float = 0.015
    peg_spacing: float = 4.2
    peg_radius: float = 1.3
    tick_interval: float = 1 / 60
    tick_budget: int = 5000

    def to_board(self) -> PlinkoBoard:
        """转换为棋盘物理参数"""
        return PlinkoBoard(
            rows=self.default_rows,
            gravity=self.gravity,
            friction=self.friction,
            bounce=self.bounce,
            min_bounce_force=self.min_bounce_force,
            jitter=self.jitter,
            peg_spacing=self.peg_spacing,
            peg_radius=self.peg_radius,
        )


@dataclass
class InsightConfig:
    """洞察服务配置"""
    api_key: Optional[str] = field(
        default_factory=lambda: os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    )
    model: str = "gemini-3-flash-preview"
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models"
    cache_ttl_seconds: float = 600.0
    max_retries: int = 2
    base_backoff_seconds: float = 1.0
    request_timeout_seconds: float = 15.0
    enabled: bool = True


@dataclass
class LoggingConfig:
    """日志配置"""
    log_level: str = 'INFO'
    enable_file_logging: bool = False
    log_file_path: str = "logs/neon_noir.log"
    enable_console_logging: bool = True
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    max_log_file_size_mb: int = 10
    backup_count: int = 5


_CONFIG_CLASSES = {
    ConfigType.CASINO_RULES: CasinoRulesConfig,
    ConfigType.PLINKO_PHYSICS: PlinkoPhysicsConfig,
    ConfigType.INSIGHT: InsightConfig,
    ConfigType.LOGGING: LoggingConfig,
}


class ConfigService:
    """配置管理服务"""

    def __init__(self):
        """初始化配置服务"""
        self.logger = logging.getLogger(__name__)
        self._configs: Dict[ConfigType, Dict[str, Any]] = {}
        self._load_default_configs()

    def _load_default_configs(self):
        """加载默认配置"""
        self._configs[ConfigType.CASINO_RULES] = {
            'default': CasinoRulesConfig(),
            # 测试和模拟使用: 庄家不停顿
            'instant': CasinoRulesConfig(dealer_step_delay=0.0, remote_write_timeout=None),
        }

        self._configs[ConfigType.PLINKO_PHYSICS] = {
            'default': PlinkoPhysicsConfig(),
            'instant': PlinkoPhysicsConfig(tick_interval=0.0),
        }

        self._configs[ConfigType.INSIGHT] = {
            'default': InsightConfig(),
            'offline': InsightConfig(api_key=None, enabled=False, max_retries=0),
        }

        self._configs[ConfigType.LOGGING] = {
            'default': LoggingConfig(),
            'debug': LoggingConfig(
                log_level='DEBUG',
                enable_file_logging=True
            ),
            'production': LoggingConfig(
                log_level='WARNING',
                enable_file_logging=True,
                enable_console_logging=False
            )
        }

        self.logger.debug("默认配置加载完成")

    def get_config(self, config_type: ConfigType, profile: str = "default") -> QueryResult[Any]:
        """
        获取配置

        Args:
            config_type: 配置类型
            profile: 配置档名，不存在时回退到default

        Returns:
            查询结果，包含配置对象
        """
        config_profiles = self._configs.get(config_type)
        if config_profiles is None:
            return QueryResult.failure_result(
                f"配置类型 {config_type} 不存在",
                error_code="CONFIG_TYPE_NOT_FOUND"
            )
        if profile not in config_profiles:
            self.logger.warning(f"未找到{config_type.value}配置 '{profile}'，使用默认配置")
            profile = "default"
        return QueryResult.success_result(config_profiles[profile])

    def get_casino_rules_config(self, profile: str = "default") -> QueryResult[CasinoRulesConfig]:
        """获取娱乐场规则配置"""
        return self.get_config(ConfigType.CASINO_RULES, profile)

    def get_plinko_physics_config(self, profile: str = "default") -> QueryResult[PlinkoPhysicsConfig]:
        """获取Plinko物理配置"""
        return self.get_config(ConfigType.PLINKO_PHYSICS, profile)

    def get_insight_config(self, profile: str = "default") -> QueryResult[InsightConfig]:
        """获取洞察服务配置"""
        return self.get_config(ConfigType.INSIGHT, profile)

    def get_logging_config(self, profile: str = "default") -> QueryResult[LoggingConfig]:
        """获取日志配置"""
        return self.get_config(ConfigType.LOGGING, profile)

    def update_config(self, config_type: ConfigType, profile: str, updates: Dict[str, Any]) -> QueryResult[bool]:
        """
        更新配置

        Args:
            config_type: 配置类型
            profile: 配置档名，不存在时基于默认值新建
            updates: 更新的配置项

        Returns:
            查询结果，包含更新是否成功
        """
        if config_type not in self._configs:
            return QueryResult.failure_result(
                f"配置类型 {config_type} 不存在",
                error_code="CONFIG_TYPE_NOT_FOUND"
            )

        config_profiles = self._configs[config_type]
        config_cls = _CONFIG_CLASSES[config_type]
        current_config = config_profiles.get(profile) or config_cls()
        known = {f.name for f in fields(config_cls)}

        values = {f.name: getattr(current_config, f.name) for f in fields(config_cls)}
        for key, value in updates.items():
            if key in known:
                values[key] = value
            else:
                self.logger.warning(f"配置项 {key} 不存在于 {config_type.value}.{profile} 中")

        try:
            # 重新构造以触发__post_init__校验
            config_profiles[profile] = config_cls(**values)
        except (TypeError, ValueError) as e:
            return QueryResult.failure_result(
                f"更新配置失败: {e}",
                error_code="INVALID_CONFIG_VALUE"
            )

        self.logger.info(f"配置 {config_type.value}.{profile} 更新成功")
        return QueryResult.success_result(True)

    def load_overrides(self, path: Union[str, Path]) -> QueryResult[int]:
        """
        从YAML文件加载配置覆盖项

        文件格式: {config_type: {profile: {field: value}}}

        Args:
            path: YAML文件路径

        Returns:
            查询结果，包含成功应用的配置档数量
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.error(f"读取配置文件 {path} 失败: {e}")
            return QueryResult.failure_result(
                f"读取配置文件失败: {e}",
                error_code="CONFIG_FILE_UNREADABLE"
            )

        if not isinstance(raw, dict):
            return QueryResult.failure_result(
                "配置文件顶层必须是映射",
                error_code="CONFIG_FILE_INVALID"
            )

        applied = 0
        for type_name, profiles in raw.items():
            try:
                config_type = ConfigType(type_name)
            except ValueError:
                self.logger.warning(f"忽略未知配置类型: {type_name}")
                continue
            for profile, updates in (profiles or {}).items():
                result = self.update_config(config_type, str(profile), updates or {})
                if not result.success:
                    return QueryResult.failure_result(result.message, error_code=result.error_code)
                applied += 1

        self.logger.info(f"从 {path} 加载了 {applied} 个配置档覆盖")
        return QueryResult.success_result(applied)

    def list_available_profiles(self, config_type: ConfigType) -> QueryResult[List[str]]:
        """
        列出可用的配置档

        Args:
            config_type: 配置类型

        Returns:
            查询结果，包含可用配置档列表
        """
        if config_type not in self._configs:
            return QueryResult.failure_result(
                f"配置类型 {config_type} 不存在",
                error_code="CONFIG_TYPE_NOT_FOUND"
            )
        return QueryResult.success_result(list(self._configs[config_type].keys()))


# 全局单例
_config_service_instance: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    """
    获取配置服务的全局单例

    Returns:
        ConfigService: 配置服务实例
    """
    global _config_service_instance
    if _config_service_instance is None:
        _config_service_instance = ConfigService()
    return _config_service_instance
