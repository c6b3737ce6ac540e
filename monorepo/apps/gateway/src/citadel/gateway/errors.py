"""HTTP 错误映射

统一错误响应格式：{"error": {"code": ..., "message": ...}}
- CitadelError 子类（数据类错误）-> 404
- RequestError -> 构造时指定的状态码（400 / 401 / 409）
"""

import structlog
from citadel.core.exceptions import CitadelError
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()


class RequestError(Exception):
    """请求级错误（缺少字段、鉴权失败、冲突等）"""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def _citadel_error_handler(request: Request, exc: CitadelError) -> JSONResponse:
    log.info("data_error", code=exc.code, message=str(exc))
    return error_response(404, exc.code, str(exc))


async def _request_error_handler(request: Request, exc: RequestError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.message)


def register_exception_handlers(app: FastAPI) -> None:
    """注册全局异常处理器"""
    app.add_exception_handler(CitadelError, _citadel_error_handler)
    app.add_exception_handler(RequestError, _request_error_handler)
