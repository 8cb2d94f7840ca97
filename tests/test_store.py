"""
测试 KV 存储实现

内存存储和 SQLite 存储需表现一致。
"""

import pytest

from monitor_backend.config import StoreConfig
from monitor_backend.errors import StoreFailure
from monitor_backend.store import MemoryKVStore, SQLiteKVStore, create_store


@pytest.fixture(params=["memory", "sqlite"])
def kv(request, tmp_path):
    if request.param == "memory":
        return MemoryKVStore()
    return SQLiteKVStore(str(tmp_path / "kv.db"))


async def test_get_put_delete(kv):
    assert await kv.get("a") is None

    await kv.put("a", "1")
    assert await kv.get("a") == "1"

    await kv.put("a", "2")
    assert await kv.get("a") == "2"

    await kv.delete("a")
    assert await kv.get("a") is None

    # 删除不存在的键不报错
    await kv.delete("missing")


async def test_json_helpers(kv):
    await kv.put_json("doc", [{"x": 1}])
    assert await kv.get_json("doc") == [{"x": 1}]
    assert await kv.get_json("missing") is None


async def test_invalid_json_raises_store_failure(kv):
    await kv.put("broken", "{not json")
    with pytest.raises(StoreFailure):
        await kv.get_json("broken")


async def test_list_keys_prefix_and_range(kv):
    for key in ["history:s1:10", "history:s1:20", "history:s1:30", "history:s10:5", "status:s1"]:
        await kv.put(key, "[]")

    assert await kv.list_keys("history:s1:") == [
        "history:s1:10", "history:s1:20", "history:s1:30",
    ]
    assert await kv.list_keys("history:s1:", start="history:s1:20") == [
        "history:s1:20", "history:s1:30",
    ]
    assert await kv.list_keys("history:s1:", start="history:s1:10", end="history:s1:30") == [
        "history:s1:10", "history:s1:20",
    ]
    assert await kv.list_keys("nothing:") == []


async def test_list_keys_is_lexicographic(kv):
    await kv.put("k:9999", "1")
    await kv.put("k:10000", "1")
    assert await kv.list_keys("k:") == ["k:10000", "k:9999"]


async def test_sqlite_store_persists(tmp_path):
    path = str(tmp_path / "nested" / "kv.db")
    await SQLiteKVStore(path).put("a", "1")
    assert await SQLiteKVStore(path).get("a") == "1"


def test_create_store_backends(tmp_path):
    assert isinstance(create_store(StoreConfig(backend="memory")), MemoryKVStore)
    store = create_store(StoreConfig(backend="sqlite", path=str(tmp_path / "m.db")))
    assert isinstance(store, SQLiteKVStore)
