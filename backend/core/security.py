"""
统一鉴权模块
提供JWT令牌生成、验证、密码处理以及当前用户解析
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_db
from .errors import AuthException, ErrorCode, PermissionException

logger = logging.getLogger(__name__)
settings = get_settings()

# Bearer令牌认证（缺失时由 get_current_user 自行返回统一格式的 401）
security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """令牌数据"""
    user_id: int
    username: str
    role: str = "user"


class CurrentUser(BaseModel):
    """已解析的请求主体（不含密码）"""
    id: int
    username: str
    email: str
    role: str = "user"
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(password: str) -> str:
    """
    加密密码
    bcrypt 限制密码长度不超过 72 字节
    """
    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


def create_token(data: TokenData, expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT令牌

    Args:
        data: 令牌数据
        expires_delta: 过期时间增量，默认使用配置的有效期（7天）
    """
    to_encode = data.model_dump()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenData:
    """
    解码JWT令牌

    Raises:
        AuthException: 令牌过期（TOKEN_EXPIRED）或签名/格式无效（TOKEN_INVALID）
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthException(ErrorCode.TOKEN_EXPIRED)
    except JWTError:
        raise AuthException(ErrorCode.TOKEN_INVALID)

    try:
        return TokenData(**payload)
    except ValidationError:
        raise AuthException(ErrorCode.TOKEN_INVALID)


async def _resolve_user(db: AsyncSession, token: str) -> CurrentUser:
    """令牌 -> 用户记录"""
    from models import User

    token_data = decode_token(token)
    result = await db.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthException(ErrorCode.ACCOUNT_NOT_FOUND)
    return CurrentUser.model_validate(user)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> CurrentUser:
    """获取当前用户（依赖注入用），未登录或令牌无效时返回 401"""
    if credentials is None or not credentials.credentials:
        raise AuthException(ErrorCode.UNAUTHORIZED)
    return await _resolve_user(db, credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[CurrentUser]:
    """可选认证：能解析出用户则返回，否则按匿名处理"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await _resolve_user(db, credentials.credentials)
    except AuthException as e:
        logger.debug(f"可选认证失败，按匿名用户处理: {e.message}")
        return None


def require_roles(*roles: str):
    """仅允许指定角色访问（不考虑资源归属）"""
    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise PermissionException()
        return user
    return role_checker


def require_admin():
    """仅允许管理员访问（role=admin）"""
    return require_roles("admin")


def can_act(user: Optional[CurrentUser], owner_id: Optional[int]) -> bool:
    """管理员或资源所有者才能操作"""
    if user is None:
        return False
    return user.is_admin or (owner_id is not None and user.id == owner_id)
