"""
Monitor Agent 主程序入口

使用方式:
    python -m monitor_agent [-c /etc/monitor-agent/config.yaml]
"""

import argparse
import asyncio
import logging
import sys

from monitor_agent.config import load_config
from monitor_agent.reporter import Reporter


def main(argv=None):
    """主程序入口"""
    parser = argparse.ArgumentParser(prog="monitor-agent", description="服务器监控上报代理")
    parser.add_argument("-c", "--config", help="配置文件路径")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Please create config file at /etc/monitor-agent/config.yaml", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("Starting Monitor Agent...")
    print(f"Server ID: {config.server_id}")
    print(f"Report URL: {config.report_url}")

    try:
        asyncio.run(Reporter(config).run())
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")


if __name__ == "__main__":
    main()
