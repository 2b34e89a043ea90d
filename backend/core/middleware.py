"""
中间件模块
提供请求日志、请求上下文和安全响应头
"""

import time
import uuid
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from utils.request import get_client_ip

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    只记录慢请求和错误请求，并为响应加上请求ID和耗时
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths=None,
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        default_skip = [
            "/uploads/",
            "/health",
            "/api/docs",
            "/api/redoc",
            "/api/openapi.json",
            "/favicon.ico"
        ]
        self.skip_paths = list(skip_paths) if skip_paths else default_skip
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())[:8]
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.error(
                f"[请求异常] {method} {path} | {get_client_ip(request)} | {duration_ms}ms | {e}"
            )
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(f"[慢请求] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif response.status_code >= 500:
            logger.error(f"[服务端错误] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif response.status_code >= 400:
            logger.warning(f"[请求错误] {method} {path} | {response.status_code} | {duration_ms}ms")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    安全响应头中间件
    API 路径禁用缓存
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"

        if "Server" in response.headers:
            del response.headers["Server"]

        return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    请求上下文中间件
    在 request.state 中注入请求ID和客户端IP，沿用客户端传入的 X-Request-ID
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request.state.request_id = request_id
        request.state.start_time = time.time()
        request.state.client_ip = get_client_ip(request)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
