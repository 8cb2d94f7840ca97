"""
内存采集器
"""

import psutil


async def get_memory_stats() -> dict:
    """采集内存使用（字节）"""
    mem = psutil.virtual_memory()
    return {
        "total": mem.total,
        "used": mem.used,
        "usage_percent": round(mem.percent, 2),
    }
