"""异常处理器配置模块

配置全局异常处理器，所有错误统一为 {code, message, data, timestamp} 结构
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas.base import default_timestamp
from utils.exceptions import BusinessException
from utils.status_codes import (
    BAD_REQUEST, UNAUTHORIZED, FORBIDDEN, NOT_FOUND, CONFLICT,
    UNPROCESSABLE, TOO_MANY_REQUESTS, INTERNAL_ERROR, get_message
)

logger = logging.getLogger(__name__)

# HTTP状态码 -> 自定义状态码
HTTP_CODE_MAP = {
    400: BAD_REQUEST,
    401: UNAUTHORIZED,
    403: FORBIDDEN,
    404: NOT_FOUND,
    409: CONFLICT,
    422: UNPROCESSABLE,
    429: TOO_MANY_REQUESTS,
    500: INTERNAL_ERROR,
}


def error_body(code: str, message: str, data=None) -> dict:
    return {
        "code": code,
        "message": message,
        "data": data,
        "timestamp": default_timestamp()
    }


def configure_exception_handlers(app: FastAPI) -> None:
    """配置全局异常处理器"""

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        """业务异常处理器"""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, jsonable_encoder(exc.data))
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """请求参数校验失败，返回逐字段错误"""
        errors = {}
        for error in exc.errors():
            # loc 形如 ("body", "name")，去掉来源前缀作为字段名
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
            field = ".".join(loc) or "request"
            message = error.get("msg", "")
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            errors.setdefault(field, []).append(message)
        return JSONResponse(
            status_code=422,
            content=error_body(UNPROCESSABLE, get_message(UNPROCESSABLE), {"errors": errors})
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """HTTP异常处理器（路由不存在、方法不允许等）"""
        code = HTTP_CODE_MAP.get(exc.status_code, str(exc.status_code))
        detail = exc.detail
        if isinstance(detail, dict):
            message = detail.get("message", str(detail))
            data = detail.get("data")
        else:
            message = str(detail)
            data = None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(code, message, data),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """通用异常处理器"""
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=error_body(INTERNAL_ERROR, get_message(INTERNAL_ERROR))
        )
