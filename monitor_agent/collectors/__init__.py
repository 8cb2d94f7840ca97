"""
数据采集器模块

包含 CPU、内存、磁盘、网络采集器
"""

from .cpu import get_cpu_stats, prime_cpu_percent
from .disk import get_disk_stats
from .memory import get_memory_stats
from .network import get_network_stats

__all__ = [
    "get_cpu_stats",
    "prime_cpu_percent",
    "get_disk_stats",
    "get_memory_stats",
    "get_network_stats",
]
