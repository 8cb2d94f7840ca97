"""
Monitor Agent - 监控数据上报代理

定时采集 CPU、内存、磁盘、网络指标并推送到 Monitor Backend。
"""

__version__ = "1.0.0"
