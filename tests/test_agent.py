"""
测试 Monitor Agent 上报

采集器用固定数据替换，HTTP 通过 httpx.MockTransport / ASGITransport 模拟。
"""

import json

import httpx
import pytest

from monitor_agent import reporter as reporter_module
from monitor_agent.config import AgentConfig, load_config
from monitor_agent.reporter import Reporter, build_sample
from monitor_backend.ingest import validate_sample


@pytest.fixture(autouse=True)
def fake_collectors(monkeypatch):
    async def _cpu():
        return {"usage_percent": 12.5, "cores": 4}

    async def _memory():
        return {"total": 8 * 1024 ** 3, "used": 2 * 1024 ** 3, "usage_percent": 25.0}

    async def _disk(mount):
        return {"total": 100 * 1024 ** 3, "used": 40 * 1024 ** 3, "usage_percent": 40.0}

    async def _network():
        return {"rx_bytes": 1000, "tx_bytes": 2000}

    monkeypatch.setattr(reporter_module, "get_cpu_stats", _cpu)
    monkeypatch.setattr(reporter_module, "get_memory_stats", _memory)
    monkeypatch.setattr(reporter_module, "get_disk_stats", _disk)
    monkeypatch.setattr(reporter_module, "get_network_stats", _network)


@pytest.fixture
def agent_config():
    return AgentConfig(
        server_id="node-1",
        hostname="node-1.local",
        ip="10.0.0.5",
        report_url="http://test/report",
        token="test-key",
    )


async def test_build_sample_is_valid_report(agent_config):
    sample = await build_sample(agent_config, "10.0.0.5", now=1700000000.9)

    assert sample["timestamp"] == 1700000000
    assert sample["server_id"] == "node-1"
    assert sample["network"] == {"rx_bytes": 1000, "tx_bytes": 2000}
    # 服务端校验可以通过
    validate_sample(sample)


async def test_report_once_sends_bearer_token(agent_config):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    reporter = Reporter(agent_config, client=client)

    assert await reporter.report_once() is True
    assert captured["auth"] == "Bearer test-key"
    assert captured["body"]["ip"] == "10.0.0.5"
    await reporter.close()


async def test_report_once_rejected(agent_config):
    client = httpx.AsyncClient(transport=httpx.MockTransport(
        lambda request: httpx.Response(403, text="Invalid authentication token")
    ))
    reporter = Reporter(agent_config, client=client)

    assert await reporter.report_once() is False
    await reporter.close()


async def test_report_once_connection_error(agent_config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    reporter = Reporter(agent_config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    assert await reporter.report_once() is False
    await reporter.close()


async def test_report_reaches_backend(agent_config, app, store):
    """Agent 直接上报到 ASGI 应用"""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    reporter = Reporter(agent_config, client=client)

    assert await reporter.report_once() is True

    status = await store.get_json("status:node-1")
    assert status["hostname"] == "node-1.local"
    assert status["cpu"]["usage_percent"] == 12.5
    servers = await store.get_json("servers_list")
    assert [s["id"] for s in servers] == ["node-1"]
    await reporter.close()


def test_load_agent_config(tmp_path, monkeypatch):
    monkeypatch.delenv("MONITOR_AGENT_TOKEN", raising=False)
    config_file = tmp_path / "agent.yaml"
    config_file.write_text(
        "server_id: node-2\n"
        "report_url: https://monitor.example.com/report\n"
        "token: secret\n"
        "interval: 30\n",
        encoding="utf-8",
    )

    config = load_config(str(config_file))
    assert config.server_id == "node-2"
    assert config.interval == 30
    assert config.hostname

    monkeypatch.setenv("MONITOR_AGENT_TOKEN", "from-env")
    assert load_config(str(config_file)).token == "from-env"


def test_load_agent_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))
