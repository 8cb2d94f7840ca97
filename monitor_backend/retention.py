"""
历史数据清理

按保留窗口删除过期的历史桶。最新状态和注册表不会被自动清理，
服务器只能通过 purge_server 手动移除。
"""

import asyncio
import logging
from typing import Callable, Optional

from .buckets import SERVERS_LIST_KEY, history_prefix, parse_bucket_start, status_key
from .config import get_config
from .errors import ServerNotFound
from .ingest import now_ms
from .store import KVStore, get_store

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """过期历史桶清理"""

    def __init__(self, store: KVStore, retention_ms: int, clock: Callable[[], int] = now_ms):
        self.store = store
        self.retention_ms = retention_ms
        self.clock = clock

    async def sweep(self, now: Optional[int] = None) -> int:
        """
        执行一次清理

        删除所有 bucket_start_ms < now - retention_ms 的历史桶。

        Returns:
            删除的桶数量
        """
        if now is None:
            now = self.clock()
        cutoff = now - self.retention_ms

        servers = await self.store.get_json(SERVERS_LIST_KEY)
        if not servers:
            return 0

        deleted = 0
        for server in servers:
            prefix = history_prefix(server["id"])
            for key in await self.store.list_keys(prefix):
                bucket_ms = parse_bucket_start(key, prefix)
                if bucket_ms is None:
                    logger.warning(f"Skipping unparseable history key: {key}")
                    continue
                if bucket_ms < cutoff:
                    await self.store.delete(key)
                    deleted += 1

        logger.info(f"Retention sweep removed {deleted} buckets older than {cutoff}")
        return deleted

    async def purge_server(self, server_id: str) -> int:
        """
        手动移除服务器

        删除注册表记录、最新状态和全部历史桶。

        Returns:
            删除的历史桶数量
        """
        servers = await self.store.get_json(SERVERS_LIST_KEY) or []
        remaining = [s for s in servers if s.get("id") != server_id]
        if len(remaining) == len(servers):
            raise ServerNotFound("Server not found")

        await self.store.put_json(SERVERS_LIST_KEY, remaining)
        await self.store.delete(status_key(server_id))

        prefix = history_prefix(server_id)
        deleted = 0
        for key in await self.store.list_keys(prefix):
            if parse_bucket_start(key, prefix) is None:
                continue
            await self.store.delete(key)
            deleted += 1

        logger.info(f"Removed server {server_id} and {deleted} history buckets")
        return deleted


def create_sweeper(store: Optional[KVStore] = None) -> RetentionSweeper:
    """按全局配置创建清理器"""
    config = get_config()
    return RetentionSweeper(store or get_store(), config.retention.window_ms)


async def run_retention(sweeper: Optional[RetentionSweeper] = None):
    """
    运行数据清理任务

    每隔 retention.interval_minutes 执行一次清理。
    """
    config = get_config()
    interval = config.retention.interval_minutes * 60
    if sweeper is None:
        sweeper = create_sweeper()

    logger.info(
        f"Starting retention task (interval={config.retention.interval_minutes}m, "
        f"retention={config.retention.days}d)"
    )

    while True:
        try:
            await sweeper.sweep()
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Retention task cancelled")
            raise
        except Exception as e:
            logger.error(f"Retention error: {e}", exc_info=True)
            await asyncio.sleep(interval)
