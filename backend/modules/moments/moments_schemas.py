"""
动态数据验证模式
"""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas import AuthorBrief

Visibility = Literal["public", "private", "friends"]

MAX_IMAGES = 9


def _strip_content(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError('动态内容不能为空')
    return value


def _check_images(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    if len(value) > MAX_IMAGES:
        raise ValueError(f'最多只能上传{MAX_IMAGES}张图片')
    if any(not url or not url.strip() for url in value):
        raise ValueError('图片URL必须是非空字符串')
    return value


class MomentCreate(BaseModel):
    """发布动态"""
    content: str = Field(..., min_length=1, max_length=1000)
    images: List[str] = []
    location: Optional[str] = Field(None, max_length=200)
    visibility: Visibility = "public"

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return _strip_content(v)

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_images(v)


class MomentUpdate(BaseModel):
    """更新动态"""
    content: Optional[str] = Field(None, min_length=1, max_length=1000)
    images: Optional[List[str]] = None
    location: Optional[str] = Field(None, max_length=200)
    visibility: Optional[Visibility] = None

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return _strip_content(v)

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_images(v)


class MomentPin(BaseModel):
    is_pinned: bool


class MomentInfo(BaseModel):
    """动态信息"""
    id: int
    user_id: int
    user: Optional[AuthorBrief] = None
    content: str
    images: List[str] = []
    location: Optional[str]
    visibility: str
    is_pinned: bool
    published_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('images', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or []
