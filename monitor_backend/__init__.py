"""
Monitor Backend - 监控数据接收与查询服务

负责：
- 接收 Agent 上报的监控数据（POST /report）
- 按 10 分钟时间桶存储历史数据到 KV 存储
- 提供 REST API 查询服务器列表、最新状态和历史数据
- 定期清理过期的历史数据
"""

__version__ = "1.0.0"
