"""
查询处理

读取注册表、最新状态和历史桶，组装 API 响应数据。
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from .buckets import SERVERS_LIST_KEY, history_prefix, parse_bucket_start, status_key
from .errors import ServerNotFound
from .ingest import now_ms
from .store import KVStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW_MS = 24 * 60 * 60 * 1000


class QueryService:
    """只读查询"""

    def __init__(self, store: KVStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    async def list_servers(self) -> List[Dict[str, Any]]:
        """服务器注册表，按首次上报顺序"""
        return await self.store.get_json(SERVERS_LIST_KEY) or []

    async def all_status(self) -> List[Dict[str, Any]]:
        """
        所有服务器的最新状态

        顺序与注册表一致，没有最新状态的服务器直接跳过。
        """
        statuses = []
        for server in await self.list_servers():
            status = await self.store.get_json(status_key(server["id"]))
            if status:
                statuses.append(status)
        return statuses

    async def server_status(self, server_id: str) -> Dict[str, Any]:
        """单台服务器的最新状态"""
        status = await self.store.get_json(status_key(server_id))
        if not status:
            raise ServerNotFound("Server not found")
        return status

    async def history_keys(self, server_id: str, start: int, end: int) -> List[str]:
        """
        列出起始时间落在 [start, end] 内的历史桶键

        桶起始时间是不定长的十进制字符串，字典序与数值序不一致，
        因此按前缀列出后再按数值过滤。
        """
        prefix = history_prefix(server_id)
        keys = []
        for key in await self.store.list_keys(prefix):
            bucket_ms = parse_bucket_start(key, prefix)
            if bucket_ms is not None and start <= bucket_ms <= end:
                keys.append(key)
        keys.sort(key=lambda k: parse_bucket_start(k, prefix))
        return keys

    async def history(
        self,
        server_id: str,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        查询历史样本

        Args:
            server_id: 服务器 ID
            start: 开始时间（毫秒），默认 end 之前 24 小时
            end: 结束时间（毫秒），默认当前时间

        Returns:
            按样本 timestamp 升序排列的样本列表
        """
        if end is None:
            end = self.clock()
        if start is None:
            start = end - DEFAULT_HISTORY_WINDOW_MS

        keys = await self.history_keys(server_id, start, end)
        if not keys:
            return []

        buckets = await asyncio.gather(*(self.store.get_json(key) for key in keys))

        samples = []
        for bucket in buckets:
            # 列出之后被清理任务删除的桶
            if bucket:
                samples.extend(bucket)

        samples.sort(key=lambda s: s.get("timestamp", 0))
        logger.debug(f"History for {server_id}: {len(keys)} buckets, {len(samples)} samples")
        return samples
