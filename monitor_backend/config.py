"""
配置加载模块

从 config.yaml 加载配置，支持 Pydantic 验证和环境变量覆盖。
"""

import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class APIConfig(BaseModel):
    """API 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: List[str] = ["*"]


class AuthConfig(BaseModel):
    """上报认证配置"""
    key: str = "auth_key"


class StoreConfig(BaseModel):
    """KV 存储配置"""
    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str = "data/monitor.db"
    timeout: int = 30


class RetentionConfig(BaseModel):
    """数据保留策略"""
    days: float = 1
    interval_minutes: int = 60

    @property
    def window_ms(self) -> int:
        """保留窗口（毫秒）"""
        return int(self.days * 24 * 60 * 60 * 1000)


class FrontendConfig(BaseModel):
    """前端配置"""
    path: str = "frontend"
    enabled: bool = False


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """应用配置（完整配置）"""
    api: APIConfig = Field(default_factory=APIConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    frontend: FrontendConfig = Field(default_factory=FrontendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class EnvOverrides(BaseSettings):
    """
    环境变量覆盖项

    部署环境通过 AUTH_KEY / DATA_RETENTION_DAYS 注入密钥和保留天数，
    优先级高于 config.yaml。
    """
    auth_key: Optional[str] = None
    data_retention_days: Optional[float] = None


def apply_env_overrides(config: AppConfig, overrides: Optional[EnvOverrides] = None) -> AppConfig:
    """把环境变量覆盖到配置上"""
    if overrides is None:
        overrides = EnvOverrides()

    if overrides.auth_key:
        config.auth.key = overrides.auth_key
    if overrides.data_retention_days is not None:
        config.retention.days = overrides.data_retention_days
    return config


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    加载配置文件

    优先级：
    1. 参数指定的路径
    2. 环境变量 MONITOR_CONFIG_PATH
    3. 默认路径 config.yaml

    文件中的相对路径按配置文件所在目录解析。
    """
    if config_path is None:
        config_path = os.environ.get("MONITOR_CONFIG_PATH", "config.yaml")

    config_file = Path(config_path)
    config = AppConfig()

    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
        if raw_config:
            base_dir = config_file.resolve().parent

            def _resolve_path(value: Optional[str]) -> Optional[str]:
                if not value:
                    return value
                path = Path(value)
                if path.is_absolute():
                    return str(path)
                return str((base_dir / path).resolve())

            for section in ("store", "frontend"):
                if raw_config.get(section) and raw_config[section].get("path"):
                    raw_config[section]["path"] = _resolve_path(raw_config[section]["path"])
            if raw_config.get("logging") and raw_config["logging"].get("file"):
                raw_config["logging"]["file"] = _resolve_path(raw_config["logging"]["file"])

            config = AppConfig(**raw_config)

    return apply_env_overrides(config)


# 全局配置实例（延迟加载）
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例（单例模式）"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """重置配置（主要用于测试）"""
    global _config
    _config = None


def set_config(config: AppConfig):
    """替换全局配置（命令行指定配置文件时使用）"""
    global _config
    _config = config
