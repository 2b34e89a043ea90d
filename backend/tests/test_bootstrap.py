"""
系统引导模块测试
"""

import pytest
from sqlalchemy import select

from core.bootstrap import init_admin_user
from core.config import get_settings
from models import User


class TestBootstrap:
    """默认管理员初始化测试"""

    @pytest.mark.asyncio
    async def test_creates_admin_once(self, db_session):
        result = await init_admin_user()
        assert result["created"] is True
        assert result["username"] == get_settings().admin_username

        users = (await db_session.execute(select(User).where(User.role == "admin"))).scalars().all()
        assert len(users) == 1

        result = await init_admin_user()
        assert result["created"] is False

    @pytest.mark.asyncio
    async def test_skips_when_username_taken(self, db_session):
        settings = get_settings()
        db_session.add(User(
            username=settings.admin_username,
            email="someone@example.com",
            password_hash="x",
            role="user"
        ))
        await db_session.commit()

        result = await init_admin_user()
        assert result["created"] is False
        assert "已被使用" in result["message"]

    @pytest.mark.asyncio
    async def test_rejects_blank_password(self, db_session, monkeypatch):
        monkeypatch.setattr(get_settings(), "admin_password", "   ")
        result = await init_admin_user()
        assert result["created"] is False
