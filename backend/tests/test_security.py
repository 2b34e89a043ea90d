"""
安全模块单元测试
"""

import pytest
from datetime import timedelta
from httpx import AsyncClient

from core.errors import AuthException, ErrorCode
from core.security import (
    hash_password,
    verify_password,
    create_token,
    decode_token,
    can_act,
    CurrentUser,
    TokenData
)
from tests.test_conftest import auth_headers


class TestPasswordHashing:
    """密码哈希测试"""

    def test_hash_password(self):
        """测试密码哈希生成"""
        password = "TestPassword123"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed) is True

    def test_hash_password_different_each_time(self):
        """测试每次哈希结果不同（使用随机盐）"""
        assert hash_password("TestPassword123") != hash_password("TestPassword123")

    def test_verify_password_incorrect(self):
        hashed = hash_password("TestPassword123")
        assert verify_password("WrongPassword456", hashed) is False

    def test_verify_password_malformed_hash(self):
        assert verify_password("TestPassword123", "not-a-bcrypt-hash") is False

    def test_long_password_truncated_to_72_bytes(self):
        """bcrypt 只使用前 72 字节"""
        base = "a" * 72
        hashed = hash_password(base + "tail-one")
        assert verify_password(base + "tail-two", hashed) is True


class TestJWT:
    """JWT 令牌测试"""

    def test_round_trip(self):
        token = create_token(TokenData(user_id=5, username="alice", role="admin"))
        data = decode_token(token)
        assert data.user_id == 5
        assert data.username == "alice"
        assert data.role == "admin"

    def test_expired_token(self):
        token = create_token(TokenData(user_id=5, username="alice"), expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthException) as exc_info:
            decode_token(token)
        assert exc_info.value.code == ErrorCode.TOKEN_EXPIRED

    def test_invalid_token(self):
        with pytest.raises(AuthException) as exc_info:
            decode_token("definitely.not.a-token")
        assert exc_info.value.code == ErrorCode.TOKEN_INVALID


class TestCanAct:
    """所有权判断测试"""

    def test_owner_and_admin(self):
        user = CurrentUser(id=1, username="u", email="u@example.com")
        admin = CurrentUser(id=2, username="a", email="a@example.com", role="admin")
        assert can_act(user, 1) is True
        assert can_act(user, 3) is False
        assert can_act(admin, 3) is True

    def test_anonymous_and_ownerless(self):
        user = CurrentUser(id=1, username="u", email="u@example.com")
        assert can_act(None, 1) is False
        assert can_act(user, None) is False


class TestAuthGate:
    """认证依赖集成测试"""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "未提供认证令牌"

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, user_token: str):
        token = create_token(TokenData(user_id=1, username="testuser"), expires_delta=timedelta(seconds=-1))
        response = await client.get("/api/v1/users/profile", headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json()["message"] == "认证令牌已过期"

    @pytest.mark.asyncio
    async def test_deleted_user_token(self, client: AsyncClient):
        token = create_token(TokenData(user_id=4242, username="ghost"))
        response = await client.get("/api/v1/users/profile", headers=auth_headers(token))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_only_route(self, client: AsyncClient, user_token: str, admin_token: str):
        response = await client.get("/api/v1/comments", headers=auth_headers(user_token))
        assert response.status_code == 403

        response = await client.get("/api/v1/comments", headers=auth_headers(admin_token))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_optional_auth_ignores_bad_token(self, client: AsyncClient):
        response = await client.get("/api/v1/articles", headers=auth_headers("garbage"))
        assert response.status_code == 200
