"""
认证数据验证
用户注册、登录、资料与密码
"""

import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_\u4e00-\u9fa5]+$')


def validate_password_strength(password: str) -> str:
    """
    验证密码强度

    要求同时包含字母和数字
    """
    if not re.search(r'[A-Za-z]', password) or not re.search(r'\d', password):
        raise ValueError('密码必须包含字母和数字')
    return password


def strip_text(value):
    return value.strip() if isinstance(value, str) else value


def validate_username_chars(username: str) -> str:
    if not USERNAME_PATTERN.match(username):
        raise ValueError('用户名只能包含字母、数字、下划线和中文')
    return username


class UserCreate(BaseModel):
    """用户注册"""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=50)

    @field_validator('username', mode='before')
    @classmethod
    def strip_username(cls, v):
        return strip_text(v)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        return validate_username_chars(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


class UserLogin(BaseModel):
    """用户登录"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    """资料更新"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    avatar: Optional[str] = Field(None, max_length=255)

    @field_validator('username', mode='before')
    @classmethod
    def strip_username(cls, v):
        return strip_text(v)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return validate_username_chars(v)

    @field_validator('avatar')
    @classmethod
    def validate_avatar(cls, v):
        if v and not re.match(r'^https?://', v) and not v.startswith('/'):
            raise ValueError('头像必须是有效的URL')
        return v


class UserInfo(BaseModel):
    """用户信息（不含密码）"""
    id: int
    username: str
    email: str
    avatar: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthorBrief(BaseModel):
    """关联展示用的作者摘要"""
    id: int
    username: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PasswordChange(BaseModel):
    """修改密码"""
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=50)

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v):
        return validate_password_strength(v)
