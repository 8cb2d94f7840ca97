"""
主程序入口

命令：
- serve（默认）: 同时运行 REST API 服务和定期清理任务
- sweep: 执行一次过期数据清理后退出（供 cron 等外部调度使用）
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from . import __version__
from .config import get_config, load_config, set_config
from .retention import create_sweeper, run_retention
from .store import get_store


def setup_logging():
    """配置日志"""
    config = get_config()

    # 日志格式
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 获取日志级别
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    # 配置根日志
    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # 如果配置了文件日志
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def run_api_server():
    """运行 API 服务器"""
    from .api.app import create_app

    config = get_config()
    app = create_app(config)

    server_config = uvicorn.Config(
        app=app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False
    )
    server = uvicorn.Server(server_config)
    await server.serve()


async def serve():
    """启动 API 服务和清理任务"""
    logger = logging.getLogger(__name__)

    config = get_config()
    logger.info("=" * 60)
    logger.info(f"Monitor Backend v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Config loaded: API={config.api.host}:{config.api.port}")
    logger.info(f"Store: {config.store.backend} ({config.store.path})")

    if config.auth.key == "auth_key":
        logger.warning("Using default auth key, set AUTH_KEY in production")

    store = get_store()
    api_task = asyncio.create_task(run_api_server())
    retention_task = asyncio.create_task(run_retention(create_sweeper(store)))

    try:
        # API 服务退出（如收到 Ctrl+C）后停止清理任务
        await api_task
    except asyncio.CancelledError:
        logger.info("Tasks cancelled, shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        retention_task.cancel()
        try:
            await retention_task
        except asyncio.CancelledError:
            pass
        await store.close()


async def sweep_once() -> int:
    """执行一次清理"""
    logger = logging.getLogger(__name__)
    store = get_store()
    try:
        deleted = await create_sweeper(store).sweep()
    finally:
        await store.close()
    logger.info(f"Sweep finished: {deleted} buckets deleted")
    return deleted


def cli(argv: Optional[list] = None):
    """命令行入口"""
    parser = argparse.ArgumentParser(prog="monitor-backend", description="服务器监控数据服务")
    parser.add_argument("command", nargs="?", choices=["serve", "sweep"], default="serve")
    parser.add_argument("-c", "--config", help="配置文件路径（默认 MONITOR_CONFIG_PATH 或 config.yaml）")
    args = parser.parse_args(argv)

    if args.config:
        set_config(load_config(args.config))

    setup_logging()

    try:
        if args.command == "sweep":
            asyncio.run(sweep_once())
        else:
            asyncio.run(serve())
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
