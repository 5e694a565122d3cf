"""
NEON NOIR Test Configuration - pytest配置文件

提供测试的基础设施:
- 带种子的随机源
- 隔离的事件总线和配置服务
- 内存账户存储与离线洞察服务
- 大厅工厂（使用instant配置档，庄家与小球不等待）
"""

import pytest

from neon_noir.application.config_service import ConfigService
from neon_noir.application.lobby_service import CasinoLobbyService
from neon_noir.core.events import EventBus, set_event_bus
from neon_noir.core.rng import create_rng
from neon_noir.services.account_store import InMemoryAccountStore
from neon_noir.services.insight_service import GeminiInsightService


def pytest_configure(config):
    """注册自定义标记"""
    config.addinivalue_line("markers", "property_test: 标记基于属性的测试")
    config.addinivalue_line("markers", "integration: 标记集成测试")


@pytest.fixture
def rng():
    """带固定种子的随机源"""
    return create_rng(1234)


@pytest.fixture
def event_bus():
    """隔离的事件总线，同时替换全局实例"""
    bus = EventBus()
    set_event_bus(bus)
    yield bus
    set_event_bus(None)


@pytest.fixture
def config_service():
    """全新的配置服务，不共享全局单例"""
    return ConfigService()


@pytest.fixture
def account_store():
    return InMemoryAccountStore()


@pytest.fixture
def account(account_store):
    """初始余额10000的测试账户"""
    return account_store.create_account("neon_tester", 10000, account_id="acct-1")


@pytest.fixture
def offline_insight(config_service):
    """离线洞察服务，始终返回固定文案或模拟天气"""
    config = config_service.get_insight_config("offline").data
    return GeminiInsightService(config, rng=create_rng(7))


@pytest.fixture
def lobby_factory(account_store, event_bus, config_service, offline_insight):
    """创建使用instant配置档的大厅"""
    def _create(insight_service=offline_insight, rng=None, seed=99, **kwargs):
        return CasinoLobbyService(
            account_store,
            insight_service=insight_service,
            event_bus=event_bus,
            config_service=config_service,
            rules_profile="instant",
            physics_profile="instant",
            rng=rng or create_rng(seed),
            **kwargs,
        )
    return _create
