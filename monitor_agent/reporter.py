"""
上报器

定时采集本机指标，以 Bearer Token 推送到服务端 /report。
"""

import asyncio
import logging
import socket
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

from .collectors import (
    get_cpu_stats,
    get_disk_stats,
    get_memory_stats,
    get_network_stats,
    prime_cpu_percent,
)
from .config import AgentConfig

logger = logging.getLogger(__name__)


def detect_local_ip(report_url: str) -> Optional[str]:
    """
    探测本机出口 IP

    对上报地址建立 UDP "连接"（不发送数据），读取本端地址。
    """
    parsed = urlparse(report_url)
    host = parsed.hostname or "8.8.8.8"
    port = parsed.port or 80
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect((host, port))
            return s.getsockname()[0]
    except OSError:
        return None


async def build_sample(config: AgentConfig, ip: Optional[str] = None, now: Optional[float] = None) -> dict:
    """
    采集一次完整样本

    timestamp 单位为秒（服务端按秒处理）。
    """
    if now is None:
        now = time.time()
    cpu, memory, disk, network = await asyncio.gather(
        get_cpu_stats(),
        get_memory_stats(),
        get_disk_stats(config.disk),
        get_network_stats(),
    )
    return {
        "server_id": config.server_id,
        "hostname": config.hostname,
        "ip": ip,
        "timestamp": int(now),
        "cpu": cpu,
        "memory": memory,
        "disk": disk,
        "network": network,
    }


class Reporter:
    """监控数据上报器"""

    def __init__(self, config: AgentConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._ip = config.ip

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.config.token}"}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def report_once(self) -> bool:
        """
        采集并上报一次

        Returns:
            是否上报成功
        """
        if self._ip is None:
            self._ip = detect_local_ip(self.config.report_url)

        sample = await build_sample(self.config, self._ip)
        client = await self._get_client()
        try:
            response = await client.post(self.config.report_url, json=sample, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Report rejected: {e.response.status_code} {e.response.text}")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"Report failed: {e}")
            return False

        logger.debug(f"Reported sample at {sample['timestamp']}")
        return True

    async def run(self):
        """按 interval 循环上报，单次失败不退出"""
        prime_cpu_percent()
        logger.info(f"Reporting {self.config.server_id} to {self.config.report_url} every {self.config.interval}s")

        try:
            while True:
                started = time.monotonic()
                try:
                    await self.report_once()
                except Exception as e:
                    logger.error(f"Collect error: {e}", exc_info=True)
                elapsed = time.monotonic() - started
                await asyncio.sleep(max(self.config.interval - elapsed, 0))
        finally:
            await self.close()

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
