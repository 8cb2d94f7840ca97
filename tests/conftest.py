"""
测试基础配置

提供内存 KV 存储、测试配置、FastAPI TestClient 等通用 fixture。
所有测试使用隔离的内存存储，不写磁盘。
"""

import pytest
from fastapi.testclient import TestClient

from monitor_backend.api.app import create_app
from monitor_backend.api.dependencies import get_kv_store
from monitor_backend.config import AppConfig, AuthConfig, StoreConfig, reset_config, set_config
from monitor_backend.store import MemoryKVStore, reset_store

AUTH_KEY = "test-key"
AUTH_HEADERS = {"Authorization": f"Bearer {AUTH_KEY}"}


def make_sample(server_id="s1", timestamp=1000, hostname="h", **overrides):
    """构造一条合法上报样本"""
    sample = {
        "server_id": server_id,
        "hostname": hostname,
        "timestamp": timestamp,
        "cpu": {"usage_percent": 5},
        "memory": {"total": 100, "used": 50},
        "disk": {"total": 100, "used": 10},
        "network": {"rx_bytes": 1, "tx_bytes": 1},
    }
    sample.update(overrides)
    return sample


@pytest.fixture
def config():
    """测试配置（内存存储 + 固定 Token）"""
    cfg = AppConfig(
        auth=AuthConfig(key=AUTH_KEY),
        store=StoreConfig(backend="memory"),
    )
    set_config(cfg)
    yield cfg
    reset_config()
    reset_store()


@pytest.fixture
def store():
    return MemoryKVStore()


@pytest.fixture
def app(config, store):
    app = create_app(config)

    async def _override_store():
        return store

    app.dependency_overrides[get_kv_store] = _override_store
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
