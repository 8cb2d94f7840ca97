"""
上报 API

Agent 通过 POST /report 推送监控样本。
"""

import logging

from fastapi import APIRouter, Depends, Request

from ...ingest import IngestionService
from ..dependencies import get_ingestion_service, unexpected_errors, verify_report_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["report"])


@router.post("/report", dependencies=[Depends(verify_report_token)])
async def report(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    """
    接收上报数据

    认证失败返回 401/403，数据格式错误返回 400，存储失败返回 500。
    """
    with unexpected_errors():
        data = await request.json()
        await service.ingest(data)
    return {"success": True}
