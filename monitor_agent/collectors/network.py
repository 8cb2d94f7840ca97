"""
网络采集器

上报开机以来的累计收发字节数，速率由前端根据相邻样本计算
"""

import psutil


async def get_network_stats() -> dict:
    counters = psutil.net_io_counters()
    return {
        "rx_bytes": counters.bytes_recv,
        "tx_bytes": counters.bytes_sent,
    }
