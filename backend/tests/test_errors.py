"""
错误处理模块测试
"""
import pytest
from fastapi import status
from fastapi.responses import JSONResponse
from httpx import AsyncClient

from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    BusinessException,
    ERROR_MESSAGES,
    ERROR_HTTP_STATUS,
    envelope
)


class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.INTERNAL_ERROR == 1000
        assert ErrorCode.UNAUTHORIZED == 2001

    def test_every_code_has_message_and_status(self):
        for code in ErrorCode:
            assert code in ERROR_MESSAGES
            assert code in ERROR_HTTP_STATUS

    def test_envelope(self):
        assert envelope(404, "文章不存在") == {"code": 404, "message": "文章不存在", "data": None}

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.RESOURCE_NOT_FOUND)
        assert exc.http_status == status.HTTP_404_NOT_FOUND
        assert exc.message == ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]

        # 信封中的 code 是 HTTP 状态码
        assert exc.to_dict()["code"] == 404

        resp = exc.to_response()
        assert isinstance(resp, JSONResponse)
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_specific_exceptions(self):
        """测试具体异常类"""
        v_exc = ValidationException(errors=["e1"])
        assert v_exc.http_status == 400
        assert v_exc.data["errors"] == ["e1"]

        a_exc = AuthException(ErrorCode.TOKEN_EXPIRED)
        assert a_exc.http_status == status.HTTP_401_UNAUTHORIZED
        assert a_exc.message == "认证令牌已过期"

        n_exc = NotFoundException("文章")
        assert n_exc.message == "文章不存在"
        assert NotFoundException("文章", 7).message == "文章 (ID: 7) 不存在"

        p_exc = PermissionException()
        assert p_exc.http_status == status.HTTP_403_FORBIDDEN

        b_exc = BusinessException(ErrorCode.BLOG_CATEGORY_HAS_ARTICLES, "该分类下还有 2 篇文章，无法删除")
        assert b_exc.http_status == status.HTTP_400_BAD_REQUEST
        assert b_exc.message == "该分类下还有 2 篇文章，无法删除"


class TestExceptionHandlers:
    """异常处理器集成测试"""

    @pytest.mark.asyncio
    async def test_validation_error_envelope(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={"username": "ab"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == 400
        assert body["message"] == "参数验证失败"
        fields = {error["field"] for error in body["data"]["errors"]}
        assert "body.email" in fields

    @pytest.mark.asyncio
    async def test_unknown_route_envelope(self, client: AsyncClient):
        response = await client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json()["code"] == 404

    @pytest.mark.asyncio
    async def test_app_exception_envelope(self, client: AsyncClient):
        response = await client.get("/api/v1/articles/9999")
        assert response.status_code == 404
        assert response.json() == {"code": 404, "message": "文章不存在", "data": None}
