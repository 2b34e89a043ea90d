"""
中间件单元测试
测试缓存控制、安全响应头和请求追踪
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestMiddleware:
    """中间件测试"""

    async def test_api_cache_control_headers(self, client: AsyncClient):
        """测试 API 路径是否禁用了浏览器缓存"""
        response = await client.get("/api/v1")
        assert response.status_code == 200

        cc = response.headers.get("Cache-Control", "")
        assert "no-cache" in cc
        assert "no-store" in cc
        assert response.headers.get("Pragma") == "no-cache"
        assert response.headers.get("Expires") == "0"

    async def test_security_headers(self, client: AsyncClient):
        """测试安全响应头是否正确添加"""
        response = await client.get("/api/v1")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert "1; mode=block" in response.headers.get("X-XSS-Protection", "")
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"

    async def test_non_api_no_cache_control(self, client: AsyncClient):
        """非 API 路径不强制禁用缓存"""
        response = await client.get("/health")
        assert "no-store" not in response.headers.get("Cache-Control", "")

    async def test_request_id_header(self, client: AsyncClient):
        """请求追踪头"""
        response = await client.get("/api/v1/articles")
        assert response.headers.get("X-Request-ID")
        assert response.headers.get("X-Response-Time", "").endswith("ms")

    async def test_incoming_request_id_preserved(self, client: AsyncClient):
        response = await client.get("/api/v1/articles", headers={"X-Request-ID": "abc123"})
        assert response.headers.get("X-Request-ID") == "abc123"
