"""
依赖注入模块

提供 FastAPI 依赖项。测试中通过 app.dependency_overrides 替换 get_kv_store
即可注入内存存储。
"""

import logging
import secrets
from contextlib import contextmanager
from typing import Optional

from fastapi import Depends, Header

from ..config import get_config
from ..errors import AuthInvalid, AuthMissing, MonitorError, UnexpectedError
from ..ingest import IngestionService
from ..queries import QueryService
from ..retention import RetentionSweeper
from ..store import KVStore, get_store

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


async def get_kv_store() -> KVStore:
    """获取存储实例"""
    return get_store()


async def get_ingestion_service(store: KVStore = Depends(get_kv_store)) -> IngestionService:
    return IngestionService(store)


async def get_query_service(store: KVStore = Depends(get_kv_store)) -> QueryService:
    return QueryService(store)


async def get_sweeper(store: KVStore = Depends(get_kv_store)) -> RetentionSweeper:
    return RetentionSweeper(store, get_config().retention.window_ms)


async def verify_report_token(authorization: Optional[str] = Header(None)):
    """
    验证 Agent 上报 Token

    格式为 "Bearer <token>"，与配置的 auth.key 原样比较。
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthMissing("Unauthorized")

    token = authorization[len(BEARER_PREFIX):]
    if not secrets.compare_digest(token.encode(), get_config().auth.key.encode()):
        raise AuthInvalid("Invalid authentication token")


@contextmanager
def unexpected_errors():
    """把非 MonitorError 的异常转换为 500 响应"""
    try:
        yield
    except MonitorError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise UnexpectedError(str(e)) from e
