"""
上报数据处理

校验并存储一条 Agent 上报样本：
- 覆盖写入最新状态 status:{server_id}
- 追加到 10 分钟历史桶 history:{server_id}:{bucket_ms}
- 更新服务器注册表 servers_list

三类键之间没有事务保证。历史桶和注册表都是"读取-修改-写回"，
同一个桶的并发上报可能丢失其中一条样本。
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .buckets import SERVERS_LIST_KEY, bucket_start, history_key, status_key, to_millis
from .errors import ValidationFailure
from .models import Sample, ServerEntry
from .store import KVStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """当前墙钟时间（毫秒）"""
    return int(time.time() * 1000)


def validate_sample(data: Any) -> Sample:
    """
    校验上报数据

    Raises:
        ValidationFailure: 缺少必要字段或字段类型不是数值
    """
    if not isinstance(data, dict):
        raise ValidationFailure("Invalid data format")
    try:
        return Sample.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Rejected report: {e}")
        raise ValidationFailure("Invalid data format") from e


class IngestionService:
    """上报数据写入"""

    def __init__(self, store: KVStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    async def ingest(self, data: Any) -> Sample:
        """
        校验并存储一条样本

        校验失败时不会有任何写入。写入过程中出错则直接抛出，
        已完成的写入不回滚。
        """
        sample = validate_sample(data)
        record = sample.to_record()

        bucket_ms = bucket_start(to_millis(sample.timestamp))
        key = history_key(sample.server_id, bucket_ms)

        history = await self.store.get_json(key)
        bucket: List[Dict[str, Any]] = list(history) if history else []
        bucket.append(record)

        await self.store.put_json(status_key(sample.server_id), record)
        await self.store.put_json(key, bucket)

        await self.update_servers_list(sample.server_id, sample.hostname, sample.ip)

        logger.debug(f"Stored sample for {sample.server_id} in bucket {bucket_ms} ({len(bucket)} samples)")
        return sample

    async def update_servers_list(self, server_id: str, hostname: str, ip: Optional[str]):
        """更新注册表：已存在则原地替换，否则追加到末尾"""
        servers = await self.store.get_json(SERVERS_LIST_KEY) or []

        entry = ServerEntry(
            id=server_id,
            hostname=hostname,
            ip=ip,
            last_seen=self.clock(),
        ).model_dump()

        for index, server in enumerate(servers):
            if server.get("id") == server_id:
                servers[index] = entry
                break
        else:
            servers.append(entry)
            logger.info(f"Registered new server: {server_id} ({hostname})")

        await self.store.put_json(SERVERS_LIST_KEY, servers)
