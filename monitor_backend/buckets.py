"""
KV 键布局与时间桶计算

存储键：
- servers_list                        服务器注册表
- status:{server_id}                  最新状态
- history:{server_id}:{bucket_ms}     10 分钟时间桶内的历史样本
"""

from typing import Optional, Union

BUCKET_SIZE_MS = 10 * 60 * 1000

SERVERS_LIST_KEY = "servers_list"
STATUS_PREFIX = "status:"
HISTORY_PREFIX = "history:"


def to_millis(timestamp_seconds: Union[int, float]) -> Union[int, float]:
    """上报时间戳单位为秒，转换为毫秒"""
    return timestamp_seconds * 1000


def bucket_start(timestamp_ms: Union[int, float]) -> int:
    """向下取整到 10 分钟整点（毫秒）"""
    return int(timestamp_ms // BUCKET_SIZE_MS) * BUCKET_SIZE_MS


def status_key(server_id: str) -> str:
    return f"{STATUS_PREFIX}{server_id}"


def history_prefix(server_id: str) -> str:
    return f"{HISTORY_PREFIX}{server_id}:"


def history_key(server_id: str, bucket_start_ms: int) -> str:
    return f"{history_prefix(server_id)}{bucket_start_ms}"


def parse_bucket_start(key: str, prefix: str) -> Optional[int]:
    """
    从历史桶键中解析桶起始时间

    Returns:
        桶起始毫秒时间戳，键不属于该前缀或后缀不是整数时返回 None
    """
    if not key.startswith(prefix):
        return None
    suffix = key[len(prefix):]
    try:
        return int(suffix)
    except ValueError:
        return None
