"""
测试配置加载
"""

from pathlib import Path

import pytest

from monitor_backend.config import AppConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("AUTH_KEY", raising=False)
    monkeypatch.delenv("DATA_RETENTION_DAYS", raising=False)
    monkeypatch.delenv("MONITOR_CONFIG_PATH", raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert config.auth.key == "auth_key"
    assert config.retention.days == 1
    assert config.retention.window_ms == 86_400_000
    assert config.store.backend == "sqlite"


def test_load_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "auth:\n"
        "  key: from-file\n"
        "store:\n"
        "  backend: sqlite\n"
        "  path: data/kv.db\n"
        "retention:\n"
        "  days: 7\n"
        "  interval_minutes: 30\n",
        encoding="utf-8",
    )

    config = load_config(str(config_file))
    assert config.auth.key == "from-file"
    assert config.retention.window_ms == 7 * 86_400_000
    assert config.retention.interval_minutes == 30
    # 相对路径按配置文件目录解析
    assert Path(config.store.path) == (tmp_path / "data" / "kv.db").resolve()


def test_env_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("auth:\n  key: from-file\n", encoding="utf-8")
    monkeypatch.setenv("AUTH_KEY", "from-env")
    monkeypatch.setenv("DATA_RETENTION_DAYS", "0.5")

    config = load_config(str(config_file))
    assert config.auth.key == "from-env"
    assert config.retention.window_ms == 43_200_000


def test_config_path_from_env(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text("api:\n  port: 9000\n", encoding="utf-8")
    monkeypatch.setenv("MONITOR_CONFIG_PATH", str(config_file))

    assert load_config().api.port == 9000


def test_empty_file_uses_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("", encoding="utf-8")
    assert load_config(str(config_file)).api.port == AppConfig().api.port
