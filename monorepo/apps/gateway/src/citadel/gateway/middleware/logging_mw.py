"""LoggingMiddleware

为每个 HTTP 请求生成 request_id，绑定到 structlog contextvars。
调用方为 agent 时（X-Citadel-Agent 请求头）一并绑定 agent 名称。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件 -- 为每个请求生成 request_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        if caller := request.headers.get("X-Citadel-Agent"):
            structlog.contextvars.bind_contextvars(caller=caller)

        log = structlog.get_logger()
        await log.adebug("request_started")

        response = await call_next(request)

        await log.ainfo(
            "request_completed",
            status_code=response.status_code,
        )

        response.headers["X-Request-ID"] = request_id
        return response
