"""
数据模型定义

包括：
- Sample: Agent 上报的单次监控样本
- ServerEntry: 服务器注册表记录
"""

import math
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _require_number(value: Any) -> Any:
    """只接受有限的 int/float，bool、数字字符串、inf 和 NaN 都不算数值"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


Number = Annotated[Union[int, float], BeforeValidator(_require_number)]


# =============================================================================
# 上报样本
# =============================================================================

class CPUStats(BaseModel):
    """CPU 数据"""
    model_config = ConfigDict(extra="allow")

    usage_percent: Number


class MemoryStats(BaseModel):
    """内存数据（字节）"""
    model_config = ConfigDict(extra="allow")

    total: Number
    used: Number


class DiskStats(BaseModel):
    """磁盘数据（字节）"""
    model_config = ConfigDict(extra="allow")

    total: Number
    used: Number


class NetworkStats(BaseModel):
    """网络数据（累计字节数）"""
    model_config = ConfigDict(extra="allow")

    rx_bytes: Number
    tx_bytes: Number


class Sample(BaseModel):
    """
    单次上报样本

    timestamp 单位为秒。Agent 额外上报的字段原样保留，随样本一起存储和返回。
    """
    model_config = ConfigDict(extra="allow")

    server_id: str = Field(..., min_length=1)
    hostname: str = Field(..., min_length=1)
    ip: Optional[str] = None
    timestamp: Number
    cpu: CPUStats
    memory: MemoryStats
    disk: DiskStats
    network: NetworkStats

    @field_validator("timestamp")
    @classmethod
    def _timestamp_not_zero(cls, value):
        if value == 0:
            raise ValueError("timestamp is required")
        return value

    def to_record(self) -> dict:
        """转换为存储用的 JSON 字典，未上报 ip 时不写入该字段"""
        record = self.model_dump(mode="json")
        if "ip" not in self.model_fields_set:
            record.pop("ip", None)
        return record


# =============================================================================
# 服务器注册表
# =============================================================================

class ServerEntry(BaseModel):
    """服务器注册表记录（last_seen 为接收时刻的毫秒时间戳）"""
    id: str
    hostname: str
    ip: Optional[str] = None
    last_seen: int
