"""
数据库连接管理
提供异步数据库连接和会话管理

引擎在进程内只创建一次，会话按请求注入（get_db），
业务层通过参数拿到会话，不依赖全局 ORM 单例。
"""

import logging
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from typing import AsyncGenerator

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def _engine_options() -> dict:
    """按数据库类型构建引擎参数"""
    if settings.is_sqlite:
        return {"echo": False}
    return {
        "echo": False,  # 禁用 SQL 详细输出，避免日志过多
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": 0,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "connect_args": {
            "init_command": f"SET time_zone = '{settings.db_time_zone}'"
        }
    }


# 创建异步引擎
engine = create_async_engine(settings.db_url, **_engine_options())

# 会话工厂
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


class Base(DeclarativeBase):
    """模型基类"""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话（依赖注入用）"""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """在请求上下文之外获取会话（后台任务、启动初始化）"""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ensure_database_exists():
    """确保数据库存在，如果不存在则尝试创建（仅 MySQL）"""
    if settings.is_sqlite:
        return

    admin_url = (
        f"mysql+aiomysql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}"
    )
    admin_engine = create_async_engine(admin_url, echo=False)

    try:
        async with admin_engine.connect() as conn:
            result = await conn.execute(
                text("SELECT SCHEMA_NAME FROM INFORMATION_SCHEMA.SCHEMATA WHERE SCHEMA_NAME = :name"),
                {"name": settings.db_name}
            )
            if result.fetchone() is None:
                logger.info(f"数据库 '{settings.db_name}' 不存在，正在创建...")
                await conn.execute(text(
                    f"CREATE DATABASE `{settings.db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
                ))
                await conn.commit()
                logger.info(f"数据库 '{settings.db_name}' 创建成功")
            else:
                logger.debug(f"数据库 '{settings.db_name}' 已存在")
    except Exception as e:
        error_msg = str(e)
        if "Access denied" in error_msg or "1044" in error_msg:
            logger.error(f"用户 '{settings.db_user}' 没有创建数据库的权限，请手动创建 {settings.db_name}")
        else:
            logger.error(f"检查/创建数据库失败: {e}")
        raise
    finally:
        await admin_engine.dispose()


async def init_db():
    """初始化数据库（创建所有表）"""
    # 确保模型已注册到 Base.metadata
    import models  # noqa: F401
    from modules.blog import blog_models  # noqa: F401
    from modules.moments import moments_models  # noqa: F401
    from modules.projects import projects_models  # noqa: F401
    from modules.guestbook import guestbook_models  # noqa: F401
    from modules.media import media_models  # noqa: F401

    await ensure_database_exists()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"数据库表初始化完成（共 {len(Base.metadata.tables)} 张表）")


async def close_db():
    """关闭数据库连接"""
    await engine.dispose()
