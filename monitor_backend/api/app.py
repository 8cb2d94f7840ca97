"""
FastAPI 应用配置

配置 CORS、异常处理、静态文件托管、路由注册。
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import AppConfig, get_config
from ..errors import MonitorError
from .routers import report, servers

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    创建 FastAPI 应用实例

    配置：
    - CORS 中间件（所有响应附带 CORS 头）
    - MonitorError 和路由层 HTTP 错误 → {"error": message} 响应
    - API 路由
    - 静态文件托管（前端，可选）
    """
    if config is None:
        config = get_config()

    app = FastAPI(
        title="Monitor Backend",
        description="服务器监控数据接收和查询服务",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(MonitorError)
    async def monitor_error_handler(request: Request, exc: MonitorError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    origins = config.api.cors_origins
    allow_origin = "*" if "*" in origins or not origins else origins[0]
    cors_headers = {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
    }

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    # 所有响应都带 CORS 头；不带 Origin 的 OPTIONS 请求不会被 CORS 中间件拦截，这里直接应答
    @app.middleware("http")
    async def cors_everywhere(request: Request, call_next):
        if request.method == "OPTIONS" and "access-control-request-method" not in request.headers:
            return Response(headers=cors_headers)

        response = await call_next(request)
        for name, value in cors_headers.items():
            response.headers.setdefault(name, value)
        return response

    @app.get("/api/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    # 注册路由
    app.include_router(report.router)
    app.include_router(servers.router)

    # 静态文件托管（前端）
    if config.frontend.enabled:
        frontend_path = Path(config.frontend.path)
        if frontend_path.exists():
            app.mount("/", StaticFiles(directory=str(frontend_path), html=True), name="frontend")
            logger.info(f"Serving frontend from {frontend_path}")
        else:
            logger.warning(f"Frontend path not found: {frontend_path}")

    @app.on_event("startup")
    async def startup_event():
        logger.info("Monitor Backend starting up...")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Monitor Backend shutting down...")

    return app


# 默认应用实例
app = create_app()
