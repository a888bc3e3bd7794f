"""异常 -> HTTP 响应映射

响应体统一为 {"success": false, "message": ..., "error": {"code", "message"}}。
未预期的异常只返回通用消息，细节写入日志。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fieldops.core.exceptions import FieldOpsError
from starlette.responses import JSONResponse

log = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "Internal server error, please try again later"


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": {"code": code, "message": message},
        },
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    """把 FastAPI 校验错误压缩成一行可读消息"""
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(p for p in parts if p) or "Invalid request"


async def fieldops_error_handler(_: Request, exc: FieldOpsError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request_failed", error_code=exc.code, error=exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def request_validation_error_handler(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(400, "VALIDATION_ERROR", _describe_validation_error(exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception(
        "unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return error_response(500, "INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """注册全局异常处理"""
    app.add_exception_handler(FieldOpsError, fieldops_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
