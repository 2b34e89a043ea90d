# -*- coding: utf-8 -*-
"""
动态模块测试
"""

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from modules.moments.moments_schemas import MomentCreate, MomentUpdate
from tests.test_conftest import auth_headers


async def _post_moment(client: AsyncClient, token: str, **overrides) -> dict:
    payload = {"content": "今天天气不错"}
    payload.update(overrides)
    response = await client.post("/api/v1/moments", json=payload, headers=auth_headers(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestMomentSchemas:

    def test_content_trimmed(self):
        assert MomentCreate(content="  你好  ").content == "你好"

    def test_blank_content_rejected(self):
        with pytest.raises(ValidationError):
            MomentCreate(content="   ")

    def test_at_most_nine_images(self):
        MomentCreate(content="图", images=[f"/img/{i}.png" for i in range(9)])
        with pytest.raises(ValidationError):
            MomentCreate(content="图", images=[f"/img/{i}.png" for i in range(10)])

    def test_invalid_visibility(self):
        with pytest.raises(ValidationError):
            MomentUpdate(visibility="everyone")


class TestMomentAPI:

    @pytest.mark.asyncio
    async def test_create_defaults(self, client: AsyncClient, user_token: str):
        moment = await _post_moment(client, user_token, images=["/a.png", "/b.png"])
        assert moment["visibility"] == "public"
        assert moment["is_pinned"] is False
        assert moment["images"] == ["/a.png", "/b.png"]
        assert moment["published_at"] is not None
        assert moment["user"]["username"] == "testuser"

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/v1/moments", json={"content": "hi"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_visibility_tiers(self, client: AsyncClient, user_token: str, admin_token: str):
        await _post_moment(client, user_token, content="公开")
        await _post_moment(client, user_token, content="私密", visibility="private")
        await _post_moment(client, admin_token, content="管理员私密", visibility="private")

        anonymous = await client.get("/api/v1/moments")
        assert anonymous.json()["data"]["total"] == 1

        owner = await client.get("/api/v1/moments", headers=auth_headers(user_token))
        assert {m["content"] for m in owner.json()["data"]["moments"]} == {"公开", "私密"}

        admin = await client.get("/api/v1/moments", headers=auth_headers(admin_token))
        assert admin.json()["data"]["total"] == 3

        filtered = await client.get("/api/v1/moments?visibility=private")
        assert filtered.json()["data"]["total"] == 0

    @pytest.mark.asyncio
    async def test_private_detail_hidden(self, client: AsyncClient, user_token: str, admin_token: str):
        moment = await _post_moment(client, user_token, visibility="friends")

        response = await client.get(f"/api/v1/moments/{moment['id']}")
        assert response.status_code == 404

        response = await client.get(f"/api/v1/moments/{moment['id']}", headers=auth_headers(user_token))
        assert response.status_code == 200

        response = await client.get(f"/api/v1/moments/{moment['id']}", headers=auth_headers(admin_token))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_pinned_first(self, client: AsyncClient, user_token: str):
        first = await _post_moment(client, user_token, content="第一条")
        await _post_moment(client, user_token, content="第二条")

        response = await client.put(
            f"/api/v1/moments/{first['id']}/pin",
            json={"is_pinned": True},
            headers=auth_headers(user_token)
        )
        assert response.status_code == 200
        assert response.json()["message"] == "已置顶"

        response = await client.get("/api/v1/moments")
        assert response.json()["data"]["moments"][0]["id"] == first["id"]

    @pytest.mark.asyncio
    async def test_update_by_owner(self, client: AsyncClient, user_token: str, admin_token: str):
        moment = await _post_moment(client, admin_token)

        response = await client.put(
            f"/api/v1/moments/{moment['id']}",
            json={"content": "改了"},
            headers=auth_headers(user_token)
        )
        assert response.status_code == 403

        response = await client.put(
            f"/api/v1/moments/{moment['id']}",
            json={"content": "  改了  ", "location": "上海"},
            headers=auth_headers(admin_token)
        )
        data = response.json()["data"]
        assert data["content"] == "改了"
        assert data["location"] == "上海"
        assert data["visibility"] == "public"

    @pytest.mark.asyncio
    async def test_batch_delete(self, client: AsyncClient, user_token: str, admin_token: str):
        own = await _post_moment(client, user_token)
        other = await _post_moment(client, admin_token)

        response = await client.post(
            "/api/v1/moments/batch-delete",
            json={"ids": [own["id"], other["id"]]},
            headers=auth_headers(user_token)
        )
        data = response.json()["data"]
        assert data["affected_count"] == 1
        assert data["total_count"] == 2
        assert data["errors"] == [{"id": other["id"], "reason": "无权删除"}]

        response = await client.get(f"/api/v1/moments/{own['id']}")
        assert response.status_code == 404
