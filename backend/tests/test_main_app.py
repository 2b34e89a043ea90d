"""
主应用端点和全局异常处理单元测试
覆盖：首页、健康检查、API 索引、未处理异常
"""

import pytest
from httpx import AsyncClient, ASGITransport

from main import app, global_exception_handler


@pytest.mark.asyncio
class TestHealthEndpoint:
    """健康检查端点测试"""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "healthy"


@pytest.mark.asyncio
class TestRootEndpoints:
    """根路径端点测试"""

    async def test_root_path(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/api/docs"

    async def test_api_index(self, client: AsyncClient):
        response = await client.get("/api/v1")
        endpoints = response.json()["data"]["endpoints"]
        for name in ("articles", "categories", "tags", "comments", "moments", "projects", "messages", "media"):
            assert endpoints[name] == f"/api/v1/{name}"

    async def test_openapi_schema(self, client: AsyncClient):
        response = await client.get("/api/openapi.json")
        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/articles/batch-delete" in paths
        assert "/api/v1/media/upload" in paths


@pytest.mark.asyncio
class TestGlobalExceptionHandler:
    """未处理异常统一返回 500"""

    async def test_unhandled_error_envelope(self, db_session):
        @app.get("/api/v1/_boom", include_in_schema=False)
        async def boom():
            raise RuntimeError("boom")

        try:
            transport = ASGITransport(app=app, raise_app_exceptions=False)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.get("/api/v1/_boom")
        finally:
            app.router.routes[:] = [r for r in app.router.routes if getattr(r, "path", None) != "/api/v1/_boom"]

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == 500
        assert body["message"] == "服务器内部错误，请稍后重试"

    async def test_handler_hides_detail_outside_debug(self, monkeypatch):
        import main
        monkeypatch.setattr(main.settings, "debug", False)

        class DummyRequest:
            method = "GET"

            class url:
                path = "/api/v1/x"

        response = await global_exception_handler(DummyRequest(), ValueError("secret"))
        assert response.status_code == 500
        assert b"secret" not in response.body
