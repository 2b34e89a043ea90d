# -*- coding: utf-8 -*-
"""
留言板模块测试
"""

import random

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from modules.guestbook.guestbook_schemas import MessageCreate, MessageUpdate
from modules.guestbook.guestbook_services import COLORS, pick_color
from tests.test_conftest import auth_headers


async def _post_message(client: AsyncClient, token: str = None, **overrides) -> dict:
    payload = {"content": "到此一游"}
    payload.update(overrides)
    headers = auth_headers(token) if token else {}
    response = await client.post("/api/v1/messages", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestPickColor:

    def test_color_from_palette(self):
        assert len(COLORS) == 10
        assert pick_color() in COLORS

    def test_seeded_rng_is_deterministic(self):
        first = [pick_color(random.Random(42)) for _ in range(3)]
        second = [pick_color(random.Random(42)) for _ in range(3)]
        assert first == second


class TestMessageSchemas:

    def test_defaults(self):
        message = MessageCreate(content=" 你好 ")
        assert message.content == "你好"
        assert message.mood == "happy"

    def test_content_length(self):
        MessageCreate(content="字" * 500)
        with pytest.raises(ValidationError):
            MessageCreate(content="字" * 501)

    def test_invalid_mood(self):
        with pytest.raises(ValidationError):
            MessageUpdate(mood="bored")


class TestMessageAPI:

    @pytest.mark.asyncio
    async def test_anonymous_requires_nickname(self, client: AsyncClient):
        response = await client.post("/api/v1/messages", json={"content": "匿名"})
        assert response.status_code == 400
        assert response.json()["message"] == "请提供昵称"

    @pytest.mark.asyncio
    async def test_anonymous_pending_user_approved(self, client: AsyncClient, user_token: str):
        anonymous = await _post_message(client, nickname="路人")
        assert anonymous["status"] == "pending"
        assert anonymous["color"] in COLORS
        assert anonymous["user_id"] is None

        own = await _post_message(client, user_token, mood="excited")
        assert own["status"] == "approved"
        assert own["nickname"] == "testuser"
        assert own["mood"] == "excited"

        response = await client.get("/api/v1/messages")
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["messages"][0]["id"] == own["id"]

    @pytest.mark.asyncio
    async def test_public_list_nests_approved_replies(self, client: AsyncClient, user_token: str):
        parent = await _post_message(client, user_token)
        reply = await _post_message(client, user_token, content="回复", reply_to_id=parent["id"])
        await _post_message(client, nickname="路人", content="待审核回复", reply_to_id=parent["id"])

        response = await client.get("/api/v1/messages")
        data = response.json()["data"]
        assert data["total"] == 1
        replies = data["messages"][0]["replies"]
        assert [r["id"] for r in replies] == [reply["id"]]

    @pytest.mark.asyncio
    async def test_reply_target_must_be_top_level(self, client: AsyncClient, user_token: str):
        response = await client.post(
            "/api/v1/messages",
            json={"content": "回复", "reply_to_id": 9999},
            headers=auth_headers(user_token)
        )
        assert response.status_code == 400

        parent = await _post_message(client, user_token)
        reply = await _post_message(client, user_token, reply_to_id=parent["id"])
        response = await client.post(
            "/api/v1/messages",
            json={"content": "套娃", "reply_to_id": reply["id"]},
            headers=auth_headers(user_token)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_keyword_and_mood_filters(self, client: AsyncClient, user_token: str):
        await _post_message(client, user_token, content="今天很开心")
        await _post_message(client, user_token, content="有点难过", mood="sad")

        response = await client.get("/api/v1/messages?keyword=开心")
        assert response.json()["data"]["total"] == 1

        response = await client.get("/api/v1/messages?mood=sad")
        assert response.json()["data"]["messages"][0]["content"] == "有点难过"

    @pytest.mark.asyncio
    async def test_update_and_delete_by_owner(self, client: AsyncClient, user_token: str, admin_token: str):
        message = await _post_message(client, admin_token)

        response = await client.put(
            f"/api/v1/messages/{message['id']}",
            json={"content": "改了"},
            headers=auth_headers(user_token)
        )
        assert response.status_code == 403

        response = await client.put(
            f"/api/v1/messages/{message['id']}",
            json={"mood": "thinking"},
            headers=auth_headers(admin_token)
        )
        data = response.json()["data"]
        assert data["mood"] == "thinking"
        assert data["content"] == "到此一游"

    @pytest.mark.asyncio
    async def test_delete_cascades_replies(self, client: AsyncClient, user_token: str, admin_token: str):
        parent = await _post_message(client, user_token)
        reply = await _post_message(client, admin_token, reply_to_id=parent["id"])

        response = await client.delete(f"/api/v1/messages/{parent['id']}", headers=auth_headers(user_token))
        assert response.status_code == 200

        response = await client.get("/api/v1/messages/admin", headers=auth_headers(admin_token))
        ids = [m["id"] for m in response.json()["data"]["messages"]]
        assert parent["id"] not in ids
        assert reply["id"] not in ids

    @pytest.mark.asyncio
    async def test_like(self, client: AsyncClient, user_token: str):
        message = await _post_message(client, user_token)

        response = await client.post(f"/api/v1/messages/{message['id']}/like")
        assert response.json()["data"] == {"likes": 1}
        response = await client.post(f"/api/v1/messages/{message['id']}/like")
        assert response.json()["data"] == {"likes": 2}

        response = await client.post("/api/v1/messages/9999/like")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_like_pending_message_not_found(self, client: AsyncClient, admin_token: str):
        pending = await _post_message(client, nickname="路人")
        assert pending["status"] == "pending"

        response = await client.post(f"/api/v1/messages/{pending['id']}/like")
        assert response.status_code == 404

        response = await client.get("/api/v1/messages/admin", headers=auth_headers(admin_token))
        item = next(m for m in response.json()["data"]["messages"] if m["id"] == pending["id"])
        assert item["likes"] == 0


class TestMessageAdmin:

    @pytest.mark.asyncio
    async def test_admin_routes_forbidden_for_users(self, client: AsyncClient, user_token: str):
        for path in ("/api/v1/messages/admin", "/api/v1/messages/stats"):
            response = await client.get(path, headers=auth_headers(user_token))
            assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_status_and_stats(self, client: AsyncClient, admin_token: str):
        first = await _post_message(client, nickname="甲")
        await _post_message(client, nickname="乙")

        response = await client.put(
            f"/api/v1/messages/{first['id']}/status",
            json={"status": "rejected"},
            headers=auth_headers(admin_token)
        )
        assert response.json()["message"] == "留言已拒绝"

        response = await client.get("/api/v1/messages/stats", headers=auth_headers(admin_token))
        assert response.json()["data"] == {"total": 2, "pending": 1, "approved": 0, "rejected": 1}

        response = await client.get("/api/v1/messages/admin?status=pending", headers=auth_headers(admin_token))
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["messages"][0]["nickname"] == "乙"

    @pytest.mark.asyncio
    async def test_batch_approve_and_delete(self, client: AsyncClient, admin_token: str):
        first = await _post_message(client, nickname="甲")
        second = await _post_message(client, nickname="乙")

        response = await client.post(
            "/api/v1/messages/batch-approve",
            json={"ids": [first["id"], second["id"], 9999]},
            headers=auth_headers(admin_token)
        )
        data = response.json()["data"]
        assert data["affected_count"] == 2
        assert data["errors"] == [{"id": 9999, "reason": "留言不存在"}]

        response = await client.get("/api/v1/messages")
        assert response.json()["data"]["total"] == 2

        response = await client.post(
            "/api/v1/messages/batch-delete",
            json={"ids": [first["id"], second["id"]]},
            headers=auth_headers(admin_token)
        )
        assert response.json()["data"]["affected_count"] == 2

        response = await client.get("/api/v1/messages")
        assert response.json()["data"]["total"] == 0
