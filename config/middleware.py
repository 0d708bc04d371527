"""中间件配置模块

包含CORS和请求日志中间件
"""
import json
import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings

logger = logging.getLogger("api")


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """请求响应日志中间件：记录方法、路径、状态码和耗时，调试模式下附带请求体"""

    SENSITIVE_FIELDS = {'password', 'secret', 'token', 'authorization', 'credential'}

    def __init__(self, app, debug_mode: bool = False):
        super().__init__(app)
        self.debug_mode = debug_mode

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 生成请求ID用于追踪
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        logger.info(f"[{request_id}] {request.method} {request.url.path} from {client_ip}")
        if self.debug_mode and request.method in ("POST", "PUT", "PATCH"):
            await self._log_request_body(request_id, request)

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"[{request_id}] 请求处理异常: {e}, 耗时: {process_time:.3f}s")
            raise

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        logger.info(f"[{request_id}] 状态码: {response.status_code}, 耗时: {process_time:.3f}s")
        return response

    async def _log_request_body(self, request_id: str, request: Request) -> None:
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return
        body = await request.body()
        if not body:
            return
        try:
            payload = json.loads(body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug(f"[{request_id}] 请求体: <binary data: {len(body)} bytes>")
            return
        if isinstance(payload, dict):
            payload = self._mask_sensitive_data(payload)
        logger.debug(f"[{request_id}] 请求体: {json.dumps(payload, ensure_ascii=False)}")

    def _mask_sensitive_data(self, data: dict) -> dict:
        """隐藏敏感数据"""
        masked = {}
        for key, value in data.items():
            if any(field in key.lower() for field in self.SENSITIVE_FIELDS):
                masked[key] = "***MASKED***"
            elif isinstance(value, dict):
                masked[key] = self._mask_sensitive_data(value)
            else:
                masked[key] = value
        return masked


def configure_middleware(app: FastAPI) -> None:
    """配置应用中间件"""
    # CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "Origin",
            "X-Requested-With",
        ],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    # 请求响应日志中间件
    app.add_middleware(RequestResponseLoggingMiddleware, debug_mode=settings.DEBUG)
