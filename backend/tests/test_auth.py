"""
认证路由测试
"""

import pytest
from httpx import AsyncClient

from core.security import decode_token
from tests.test_conftest import auth_headers


class TestRegister:
    """注册测试"""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={
            "username": "newbie",
            "email": "newbie@example.com",
            "password": "Passw0rd"
        })
        assert response.status_code == 201
        body = response.json()
        assert body["code"] == 201
        assert body["data"]["user"]["role"] == "user"
        assert "password_hash" not in body["data"]["user"]
        assert decode_token(body["data"]["token"]).username == "newbie"

    @pytest.mark.asyncio
    async def test_duplicate_username_and_email(self, client: AsyncClient, user_token: str):
        response = await client.post("/api/v1/auth/register", json={
            "username": "testuser",
            "email": "other@example.com",
            "password": "Passw0rd"
        })
        assert response.status_code == 400
        assert response.json()["message"] == "用户名已被使用"

        response = await client.post("/api/v1/auth/register", json={
            "username": "someone",
            "email": "testuser@example.com",
            "password": "Passw0rd"
        })
        assert response.status_code == 400
        assert response.json()["message"] == "邮箱已被注册"

    @pytest.mark.asyncio
    async def test_username_is_stripped(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={
            "username": "  padded  ",
            "email": "padded@example.com",
            "password": "Passw0rd"
        })
        assert response.status_code == 201
        assert response.json()["data"]["user"]["username"] == "padded"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"username": "ab", "email": "x@example.com", "password": "Passw0rd"},
        {"username": "  ab  ", "email": "x@example.com", "password": "Passw0rd"},
        {"username": "bad name!", "email": "x@example.com", "password": "Passw0rd"},
        {"username": "valid", "email": "not-an-email", "password": "Passw0rd"},
        {"username": "valid", "email": "x@example.com", "password": "onlyletters"},
    ])
    async def test_invalid_payload(self, client: AsyncClient, payload: dict):
        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 400


class TestLogin:
    """登录与登出测试"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, user_token: str, test_user_data: dict):
        assert user_token
        assert decode_token(user_token).username == test_user_data["username"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, user_token: str, test_user_data: dict):
        response = await client.post("/api/v1/auth/login", json={
            "email": test_user_data["email"],
            "password": "Wrong12345"
        })
        assert response.status_code == 401
        assert response.json()["message"] == "邮箱或密码错误"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/login", json={
            "email": "nobody@example.com",
            "password": "Passw0rd"
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient, user_token: str):
        response = await client.post("/api/v1/auth/logout", headers=auth_headers(user_token))
        assert response.status_code == 200

        response = await client.post("/api/v1/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "登出成功"
