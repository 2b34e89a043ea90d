"""
系统引导初始化
首次启动时自动创建默认管理员账户
"""

import logging
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError

from . import database
from .config import get_settings
from .security import hash_password
from models import User

logger = logging.getLogger(__name__)


async def init_admin_user() -> dict:
    """
    初始化默认管理员账户
    已存在管理员，或用户名/邮箱已被占用时跳过
    """
    settings = get_settings()

    admin_password = settings.admin_password.strip()
    if not admin_password:
        logger.error("管理员密码不能为空")
        return {"created": False, "message": "管理员密码不能为空"}

    if len(admin_password.encode("utf-8")) > 72:
        logger.warning("密码长度超过 72 字节，将被截断")

    async with database.get_db_session() as db:
        result = await db.execute(
            select(User).where(
                or_(
                    User.role == "admin",
                    User.username == settings.admin_username,
                    User.email == settings.admin_email
                )
            )
        )
        existing_users = result.scalars().all()

        for user in existing_users:
            if user.role == "admin":
                logger.debug(f"管理员账户已存在: {user.username}")
                return {"created": False, "message": f"管理员账户已存在: {user.username}"}

        if existing_users:
            logger.warning("默认管理员的用户名或邮箱已被使用，跳过创建")
            return {"created": False, "message": "默认管理员的用户名或邮箱已被使用"}

        admin_user = User(
            username=settings.admin_username,
            email=settings.admin_email,
            password_hash=hash_password(admin_password),
            role="admin"
        )
        db.add(admin_user)
        try:
            await db.commit()
        except IntegrityError:
            # 多进程同时启动时可能并发创建
            await db.rollback()
            logger.info("管理员账户已存在（并发创建），跳过")
            return {"created": False, "message": "管理员账户已存在（并发创建）"}

        logger.info(f"默认管理员账户创建成功: {settings.admin_username}")
        return {
            "created": True,
            "username": settings.admin_username,
            "email": settings.admin_email,
            "message": f"默认管理员账户已创建: {settings.admin_username}"
        }
