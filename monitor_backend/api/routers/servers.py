"""
服务器查询 API

提供服务器列表、最新状态、历史数据查询和手动移除。
"""

import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ...errors import ValidationFailure
from ...queries import QueryService
from ...retention import RetentionSweeper
from ..dependencies import (
    get_query_service,
    get_sweeper,
    unexpected_errors,
    verify_report_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/servers", tags=["servers"])


def parse_millis(value: Optional[str], name: str) -> Optional[int]:
    """解析毫秒时间戳查询参数，小数部分直接截断"""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        millis = float(value)
    except ValueError:
        raise ValidationFailure(f"Invalid {name} parameter: {value}")
    if not math.isfinite(millis):
        raise ValidationFailure(f"Invalid {name} parameter: {value}")
    return int(millis)


@router.get("")
async def list_servers(service: QueryService = Depends(get_query_service)) -> List[Dict[str, Any]]:
    """获取服务器列表（按首次上报顺序）"""
    with unexpected_errors():
        return await service.list_servers()


@router.get("/status")
async def list_server_status(service: QueryService = Depends(get_query_service)) -> List[Dict[str, Any]]:
    """
    获取所有服务器的最新状态

    没有最新状态的服务器不出现在结果中。
    """
    with unexpected_errors():
        return await service.all_status()


@router.get("/{server_id}/status")
async def get_server_status(server_id: str, service: QueryService = Depends(get_query_service)) -> Dict[str, Any]:
    """获取单台服务器的最新状态，不存在返回 404"""
    with unexpected_errors():
        return await service.server_status(server_id)


@router.get("/{server_id}/history")
async def get_server_history(
    server_id: str,
    start: Optional[str] = Query(None, description="开始时间（毫秒），默认 end 前 24 小时"),
    end: Optional[str] = Query(None, description="结束时间（毫秒），默认当前时间"),
    service: QueryService = Depends(get_query_service),
) -> List[Dict[str, Any]]:
    """
    查询历史数据

    返回起始时间在 [start, end] 内的所有历史桶中的样本，按 timestamp 升序。
    """
    start_ms = parse_millis(start, "start")
    end_ms = parse_millis(end, "end")
    with unexpected_errors():
        return await service.history(server_id, start_ms, end_ms)


@router.delete("/{server_id}", dependencies=[Depends(verify_report_token)])
async def delete_server(server_id: str, sweeper: RetentionSweeper = Depends(get_sweeper)):
    """
    移除服务器

    删除注册表记录、最新状态和全部历史数据，需要上报 Token。
    """
    with unexpected_errors():
        deleted = await sweeper.purge_server(server_id)
    logger.info(f"Deleted server {server_id}")
    return {"success": True, "deleted_buckets": deleted}
