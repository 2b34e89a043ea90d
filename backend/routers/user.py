"""
用户路由
个人资料查看/修改、修改密码
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.database import get_db
from core.errors import AuthException, BusinessException, ErrorCode
from core.security import CurrentUser, get_current_user, hash_password, verify_password
from models import User
from schemas import UserUpdate, UserInfo, PasswordChange, success

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["用户"])


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthException(ErrorCode.ACCOUNT_NOT_FOUND)
    return user


@router.get("/profile")
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取当前用户信息"""
    user = await _load_user(db, current_user.id)
    return success(UserInfo.model_validate(user).model_dump(mode="json"))


@router.put("/profile")
async def update_profile(
    data: UserUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新当前用户信息"""
    user = await _load_user(db, current_user.id)

    if data.username and data.username != user.username:
        result = await db.execute(select(User).where(User.username == data.username))
        if result.scalar_one_or_none():
            raise BusinessException(ErrorCode.ACCOUNT_EXISTS, "用户名已被使用")
        user.username = data.username

    if "avatar" in data.model_fields_set:
        user.avatar = data.avatar

    await db.commit()
    await db.refresh(user)
    return success(UserInfo.model_validate(user).model_dump(mode="json"), "更新成功")


@router.put("/password")
async def change_password(
    data: PasswordChange,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """修改密码"""
    user = await _load_user(db, current_user.id)

    if not verify_password(data.old_password, user.password_hash):
        raise BusinessException(ErrorCode.PASSWORD_INCORRECT, "原密码错误")

    user.password_hash = hash_password(data.new_password)
    await db.commit()

    logger.info(f"用户修改密码: {user.username} (ID: {user.id})")
    return success(message="密码修改成功")
