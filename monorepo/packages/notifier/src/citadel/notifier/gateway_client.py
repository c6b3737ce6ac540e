"""SessionGatewayClient -- 会话网关调用封装

所有工具调用都是 POST {gateway_url}/tools/invoke，Bearer 鉴权：

    {"tool": "sessions_send" | "sessions_spawn", "args": {...}, "sessionKey"?: "..."}

每次调用都包在 asyncio.timeout 中；超时与连接失败统一抛出
GatewayUnreachableError，非 2xx / 非 JSON 响应抛出 GatewayResponseError。
"""

import asyncio
import time

import httpx
import structlog

from .exceptions import GatewayResponseError, GatewayUnreachableError
from .models import GatewayResponse

log = structlog.get_logger()

# 连接类异常类型集合（包装为 GatewayUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
    httpx.TransportError,
)


def normalize_session_key(session_key: str) -> str:
    """不含 ":" 的短键扩展为完整会话键 agent:<key>:main"""
    if ":" in session_key:
        return session_key
    return f"agent:{session_key}:main"


def agent_id_from_session_key(session_key: str) -> str:
    """agent:<id>:main -> <id>"""
    parts = session_key.split(":")
    return parts[1] if len(parts) > 1 and parts[1] else session_key


class SessionGatewayClient:
    """会话网关客户端

    http_client 可注入（测试中传入 httpx.MockTransport 构造的客户端）。
    """

    def __init__(
        self,
        gateway_url: str,
        token: str = "",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._gateway_url = gateway_url.rstrip("/")
        self._token = token
        self._http = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def invoke(
        self,
        tool: str,
        args: dict,
        timeout_s: float,
        session_key: str | None = None,
    ) -> GatewayResponse:
        """调用网关工具

        Args:
            tool: 工具名
            args: 工具参数
            timeout_s: 整体超时（秒）
            session_key: 调用方会话键（可选）

        Returns:
            GatewayResponse

        Raises:
            GatewayUnreachableError: 连接失败或超时
            GatewayResponseError: 非 2xx 或响应不是 JSON 对象
        """
        url = f"{self._gateway_url}/tools/invoke"
        body: dict = {"tool": tool, "args": args}
        if session_key:
            body["sessionKey"] = session_key
        headers = {"Authorization": f"Bearer {self._token}"}

        start_time = time.monotonic()
        try:
            async with asyncio.timeout(timeout_s):
                resp = await self._http.post(
                    url, json=body, headers=headers, timeout=timeout_s
                )
        except _CONNECTION_ERROR_TYPES as e:
            log.warning(
                "gateway_unreachable",
                tool=tool,
                error=repr(e),
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise GatewayUnreachableError(self._gateway_url, e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if resp.status_code >= 300:
            log.warning(
                "gateway_http_error",
                tool=tool,
                status_code=resp.status_code,
                duration_ms=duration_ms,
            )
            raise GatewayResponseError(tool, resp.status_code, resp.text)

        try:
            payload = resp.json()
        except ValueError as e:
            raise GatewayResponseError(tool, resp.status_code, resp.text) from e
        if not isinstance(payload, dict):
            raise GatewayResponseError(tool, resp.status_code, resp.text)

        log.debug("gateway_call_completed", tool=tool, duration_ms=duration_ms)
        return GatewayResponse.model_validate(payload)

    async def send(
        self,
        session_key: str,
        message: str,
        timeout_s: float,
    ) -> GatewayResponse:
        """sessions_send：向会话发送一条消息（网关同步等待回复）"""
        return await self.invoke(
            "sessions_send",
            {"sessionKey": session_key, "message": message},
            timeout_s,
        )

    async def spawn(
        self,
        session_key: str,
        task: str,
        run_timeout_s: int,
        timeout_s: float,
    ) -> GatewayResponse:
        """sessions_spawn：为 agent 派生一个有完整工具权限的工作会话"""
        return await self.invoke(
            "sessions_spawn",
            {
                "agentId": agent_id_from_session_key(session_key),
                "task": task,
                "runTimeoutSeconds": run_timeout_s,
            },
            timeout_s,
            session_key=session_key,
        )
