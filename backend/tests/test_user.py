"""
用户资料路由测试
"""

import pytest
from httpx import AsyncClient


class TestProfile:
    """个人资料测试"""

    @pytest.mark.asyncio
    async def test_get_profile(self, user_client: AsyncClient, test_user_data: dict):
        response = await user_client.get("/api/v1/users/profile")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == test_user_data["username"]
        assert data["email"] == test_user_data["email"]
        assert "password_hash" not in data

    @pytest.mark.asyncio
    async def test_update_profile(self, user_client: AsyncClient):
        response = await user_client.put("/api/v1/users/profile", json={
            "username": "renamed",
            "avatar": "https://example.com/me.png"
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "renamed"
        assert data["avatar"] == "https://example.com/me.png"

        response = await user_client.put("/api/v1/users/profile", json={"avatar": None})
        assert response.json()["data"]["avatar"] is None
        assert response.json()["data"]["username"] == "renamed"

    @pytest.mark.asyncio
    async def test_update_profile_invalid_avatar(self, user_client: AsyncClient):
        response = await user_client.put("/api/v1/users/profile", json={"avatar": "ftp://x"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_profile_taken_username(self, user_client: AsyncClient, admin_token: str):
        response = await user_client.put("/api/v1/users/profile", json={"username": "testadmin"})
        assert response.status_code == 400
        assert response.json()["message"] == "用户名已被使用"


class TestPassword:
    """修改密码测试"""

    @pytest.mark.asyncio
    async def test_change_password(self, user_client: AsyncClient, test_user_data: dict):
        response = await user_client.put("/api/v1/users/password", json={
            "old_password": test_user_data["password"],
            "new_password": "NewPass123"
        })
        assert response.status_code == 200

        response = await user_client.post("/api/v1/auth/login", json={
            "email": test_user_data["email"],
            "password": "NewPass123"
        })
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_old_password(self, user_client: AsyncClient):
        response = await user_client.put("/api/v1/users/password", json={
            "old_password": "Wrong12345",
            "new_password": "NewPass123"
        })
        assert response.status_code == 400
        assert response.json()["message"] == "原密码错误"
