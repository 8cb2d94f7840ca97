"""
配置管理模块

从 YAML 文件加载配置，支持环境变量覆盖
"""

import os
import socket
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Agent 配置模型"""

    server_id: str = Field(..., min_length=1, description="服务器唯一标识")
    hostname: str = Field(default_factory=socket.gethostname, description="上报的主机名")
    ip: Optional[str] = Field(default=None, description="上报的 IP，不填则自动探测")
    report_url: str = Field(..., description="上报地址，如 https://monitor.example.com/report")
    token: str = Field(..., description="上报认证 Token（与服务端 AUTH_KEY 一致）")
    interval: float = Field(default=60, gt=0, description="上报间隔（秒）")
    timeout: float = Field(default=10, gt=0, description="请求超时（秒）")
    disk: str = Field(default="/", description="监控的磁盘挂载点")


def load_config(config_path: Optional[str] = None) -> AgentConfig:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径，默认为 /etc/monitor-agent/config.yaml

    Returns:
        AgentConfig 实例
    """
    if config_path is None:
        config_path = os.getenv(
            "MONITOR_AGENT_CONFIG",
            "/etc/monitor-agent/config.yaml"
        )

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    with open(config_file, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    # 允许用环境变量覆盖 Token，避免写入配置文件
    token = os.getenv("MONITOR_AGENT_TOKEN")
    if token:
        config_data["token"] = token

    return AgentConfig(**config_data)
