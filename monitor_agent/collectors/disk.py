"""
磁盘采集器

采集指定挂载点的磁盘使用情况
"""

import psutil


async def get_disk_stats(mount: str = "/") -> dict:
    """
    采集磁盘使用

    Args:
        mount: 挂载点

    Returns:
        {"total": 字节, "used": 字节, "usage_percent": 0~100}
    """
    usage = psutil.disk_usage(mount)
    return {
        "total": usage.total,
        "used": usage.used,
        "usage_percent": round(usage.percent, 2),
    }
