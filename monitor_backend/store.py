"""
KV 存储抽象层

所有状态都以 JSON 字符串保存在字符串键下，支持：
- get / put / delete
- 按前缀 + 字典序区间列出键

提供两种实现：
- MemoryKVStore: 进程内字典（测试、开发）
- SQLiteKVStore: 单表 SQLite 持久化
"""

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import StoreConfig, get_config
from .errors import StoreFailure

logger = logging.getLogger(__name__)


class KVStore(ABC):
    """KV 存储接口"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """读取原始值，不存在返回 None"""

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """写入（覆盖）"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """删除，键不存在时不报错"""

    @abstractmethod
    async def list_keys(
        self,
        prefix: str = "",
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[str]:
        """
        列出键

        start/end 区间是存储接口的一部分；历史查询不使用它，
        而是列出整个前缀后按数值过滤桶起点。

        Args:
            prefix: 键前缀
            start: 字典序下界（包含）
            end: 字典序上界（不包含）

        Returns:
            按字典序排列的键列表
        """

    async def get_json(self, key: str) -> Any:
        """读取并解析 JSON，不存在返回 None"""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreFailure(f"Invalid JSON stored at {key}: {e}") from e

    async def put_json(self, key: str, value: Any) -> None:
        await self.put(key, json.dumps(value))

    async def close(self) -> None:
        pass


class MemoryKVStore(KVStore):
    """内存 KV 存储"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(
        self,
        prefix: str = "",
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[str]:
        keys = []
        for key in sorted(self._data):
            if not key.startswith(prefix):
                continue
            if start is not None and key < start:
                continue
            if end is not None and key >= end:
                continue
            keys.append(key)
        return keys

    def __len__(self) -> int:
        return len(self._data)


class SQLiteKVStore(KVStore):
    """SQLite KV 存储（单表 kv(key, value)）"""

    def __init__(self, db_path: str, timeout: int = 30):
        self.db_path = Path(db_path)
        self.timeout = timeout

        # 确保目录存在
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    @contextmanager
    def get_conn(self):
        """
        获取数据库连接（上下文管理器）

        sqlite3 的异常统一转换为 StoreFailure。
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreFailure(f"Failed to open store {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreFailure(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _get(self, key: str) -> Optional[str]:
        with self.get_conn() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def _put(self, key: str, value: str):
        with self.get_conn() as conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def _delete(self, key: str):
        with self.get_conn() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def _list_keys(self, prefix: str, start: Optional[str], end: Optional[str]) -> List[str]:
        clauses = ["substr(key, 1, ?) = ?"]
        params: List[Any] = [len(prefix), prefix]
        if start is not None:
            clauses.append("key >= ?")
            params.append(start)
        if end is not None:
            clauses.append("key < ?")
            params.append(end)

        sql = f"SELECT key FROM kv WHERE {' AND '.join(clauses)} ORDER BY key"
        with self.get_conn() as conn:
            return [row[0] for row in conn.execute(sql, params).fetchall()]

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, key)

    async def put(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._put, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def list_keys(
        self,
        prefix: str = "",
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[str]:
        return await asyncio.to_thread(self._list_keys, prefix, start, end)


def create_store(config: Optional[StoreConfig] = None) -> KVStore:
    """根据配置创建存储实例"""
    if config is None:
        config = get_config().store

    if config.backend == "memory":
        logger.warning("Using in-memory store, data will be lost on restart")
        return MemoryKVStore()
    return SQLiteKVStore(config.path, timeout=config.timeout)


# 全局存储实例（延迟加载）
_store: Optional[KVStore] = None


def get_store() -> KVStore:
    """获取全局存储实例"""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def reset_store():
    """重置存储实例（主要用于测试）"""
    global _store
    _store = None
