"""
认证路由
用户注册、登录、登出

令牌为无状态 JWT，登出只需客户端丢弃令牌
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.database import get_db
from core.errors import AuthException, BusinessException, ErrorCode
from core.security import (
    CurrentUser,
    TokenData,
    create_token,
    get_optional_user,
    hash_password,
    verify_password,
)
from models import User
from schemas import UserCreate, UserLogin, UserInfo, success, created
from utils.request import get_client_ip

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["认证"])


def _issue_token(user: User) -> str:
    return create_token(TokenData(user_id=user.id, username=user.username, role=user.role))


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    """用户注册"""
    result = await db.execute(select(User).where(User.username == data.username))
    if result.scalar_one_or_none():
        raise BusinessException(ErrorCode.ACCOUNT_EXISTS, "用户名已被使用")

    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalar_one_or_none():
        raise BusinessException(ErrorCode.ACCOUNT_EXISTS, "邮箱已被注册")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        role="user"
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"新用户注册: {user.username} (ID: {user.id})")

    return created({
        "token": _issue_token(user),
        "user": UserInfo.model_validate(user).model_dump(mode="json")
    }, "注册成功")


@router.post("/login")
async def login(data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    """用户登录"""
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"登录失败 - IP: {get_client_ip(request)}, 邮箱: {data.email}")
        raise AuthException(ErrorCode.LOGIN_FAILED)

    return success({
        "token": _issue_token(user),
        "user": UserInfo.model_validate(user).model_dump(mode="json")
    }, "登录成功")


@router.post("/logout")
async def logout(user: Optional[CurrentUser] = Depends(get_optional_user)):
    """用户登出"""
    if user:
        logger.info(f"用户登出: {user.username} (ID: {user.id})")
    return success(message="登出成功")
