"""
CPU 采集器

通过 psutil 计算两次调用之间的 CPU 使用率
"""

import psutil


def prime_cpu_percent():
    """首次调用 psutil.cpu_percent 没有参考值，启动时先采一次"""
    psutil.cpu_percent(interval=None)


async def get_cpu_stats() -> dict:
    """
    采集 CPU 使用率

    Returns:
        {"usage_percent": 0~100, "cores": 逻辑核数}
    """
    return {
        "usage_percent": round(psutil.cpu_percent(interval=None), 2),
        "cores": psutil.cpu_count(logical=True),
    }
