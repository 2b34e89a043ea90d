"""
测试配置和 Fixtures
提供测试用的数据库会话、客户端和通用工具
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from core import database
from core.config import get_settings
from core.database import Base, get_db, engine as global_engine, async_session as TestSessionLocal
from main import app


# ==================== 测试夹具 (Fixtures) ====================

@pytest_asyncio.fixture(scope="function")
async def db_session(monkeypatch) -> AsyncGenerator[AsyncSession, None]:
    """
    创建测试用数据库会话
    每个测试函数建表、使用独立会话，结束后删表；
    请求依赖和后台任务都使用这同一个会话
    """
    async with global_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = TestSessionLocal()

    try:
        async def _get_test_db():
            yield session

        app.dependency_overrides[get_db] = _get_test_db

        @asynccontextmanager
        async def _get_test_db_session():
            yield session

        monkeypatch.setattr(database, "get_db_session", _get_test_db_session)

        yield session

    finally:
        await session.rollback()
        await session.close()
        app.dependency_overrides.clear()

        async with global_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        # 连接不跨事件循环复用
        await global_engine.dispose()


@pytest.fixture
def db(db_session):
    """db_session 测试夹具的别名"""
    return db_session


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """把上传目录指向临时目录，隔离测试产生的文件"""
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    monkeypatch.setattr(get_settings(), "upload_dir", str(storage_dir))
    return storage_dir


@pytest_asyncio.fixture(scope="function")
async def client(upload_dir, db_session) -> AsyncGenerator[AsyncClient, None]:
    """创建异步测试客户端"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def test_user_data() -> dict:
    """测试用户数据"""
    return {
        "username": "testuser",
        "email": "testuser@example.com",
        "password": "Test123456"
    }


@pytest.fixture
def test_admin_data() -> dict:
    """测试管理员数据"""
    return {
        "username": "testadmin",
        "email": "testadmin@example.com",
        "password": "Admin123456",
        "role": "admin"
    }


@pytest_asyncio.fixture(scope="function")
async def admin_token(client: AsyncClient, db_session: AsyncSession, test_admin_data: dict) -> str:
    """提供登录后的管理员令牌字符串"""
    await create_test_user(db_session, test_admin_data)
    return await get_auth_token(client, test_admin_data["email"], test_admin_data["password"])


@pytest_asyncio.fixture(scope="function")
async def user_token(client: AsyncClient, db_session: AsyncSession, test_user_data: dict) -> str:
    """提供登录后的普通用户令牌字符串"""
    await create_test_user(db_session, test_user_data)
    return await get_auth_token(client, test_user_data["email"], test_user_data["password"])


@pytest_asyncio.fixture(scope="function")
async def admin_client(client: AsyncClient, admin_token: str) -> AsyncClient:
    """提供已登录管理员权限的客户端"""
    client.headers["Authorization"] = f"Bearer {admin_token}"
    return client


@pytest_asyncio.fixture(scope="function")
async def user_client(client: AsyncClient, user_token: str) -> AsyncClient:
    """提供已登录普通用户权限的客户端"""
    client.headers["Authorization"] = f"Bearer {user_token}"
    return client


# ==================== 工具函数 ====================

async def create_test_user(session: AsyncSession, user_data: dict) -> dict:
    """创建测试用户并返回用户信息"""
    from models import User
    from core.security import hash_password

    user = User(
        username=user_data["username"],
        email=user_data["email"],
        password_hash=hash_password(user_data["password"]),
        role=user_data.get("role", "user")
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role
    }


async def get_auth_token(client: AsyncClient, email: str, password: str) -> str:
    """登录并返回令牌"""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password}
    )
    if response.status_code == 200:
        return response.json()["data"]["token"]
    return ""


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
