"""Notifier 异常体系

投递链路中的所有外部调用失败都包装为 NotifierError 子类，
由守护进程按单条通知隔离处理（记录日志，通知保持未投递，下一轮重试）。
"""


class NotifierError(Exception):
    """Notifier 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过下一轮重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class GatewayUnreachableError(NotifierError):
    """会话网关不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, gateway_url: str, original_error: Exception) -> None:
        """
        Args:
            gateway_url: 尝试连接的网关地址
            original_error: 原始异常
        """
        super().__init__(
            f"会话网关不可达: {gateway_url} -- {original_error!r}",
            recoverable=True,
        )
        self.gateway_url = gateway_url
        self.original_error = original_error


class GatewayResponseError(NotifierError):
    """会话网关返回非 2xx 或无法解析的响应"""

    def __init__(self, tool: str, status_code: int, body: str = "") -> None:
        super().__init__(
            f"会话网关调用失败: {tool} -> HTTP {status_code} {body[:200]}",
            recoverable=True,
        )
        self.tool = tool
        self.status_code = status_code


class CitadelApiError(NotifierError):
    """Citadel 控制面调用失败"""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Citadel API 调用失败: {path} -- {detail}", recoverable=True)
        self.path = path
