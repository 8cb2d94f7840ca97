"""
异常定义

每个异常携带对应的 HTTP 状态码，由 API 层统一转换为 {"error": message} 响应。
"""


class MonitorError(Exception):
    """异常基类"""
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthMissing(MonitorError):
    """缺少或格式错误的 Authorization 头"""
    status_code = 401


class AuthInvalid(MonitorError):
    """认证 Token 不匹配"""
    status_code = 403


class ValidationFailure(MonitorError):
    """上报数据格式校验失败"""
    status_code = 400


class ServerNotFound(MonitorError):
    """查询的服务器不存在"""
    status_code = 404


class StoreFailure(MonitorError):
    """KV 存储读写失败"""
    status_code = 500


class UnexpectedError(MonitorError):
    """其他未预期的异常（如请求体不是合法 JSON）"""
    status_code = 500
