"""
留言板数据验证模式
"""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field, PositiveInt, field_validator

from schemas import AuthorBrief, BatchIds

Mood = Literal["happy", "sad", "angry", "excited", "thinking"]
MessageStatus = Literal["pending", "approved", "rejected"]


def _strip_content(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError('留言内容不能为空')
    return value


class MessageCreate(BaseModel):
    """发表留言（匿名时必须提供昵称）"""
    content: str = Field(..., min_length=1, max_length=500)
    nickname: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    mood: Mood = "happy"
    reply_to_id: Optional[PositiveInt] = None

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return _strip_content(v)


class MessageUpdate(BaseModel):
    """编辑留言"""
    content: Optional[str] = Field(None, min_length=1, max_length=500)
    mood: Optional[Mood] = None

    @field_validator('content')
    @classmethod
    def strip_content(cls, v):
        return _strip_content(v)


class MessageStatusUpdate(BaseModel):
    status: MessageStatus


class MessageBatchApprove(BatchIds):
    """批量审核"""
    status: MessageStatus = "approved"


class MessageInfo(BaseModel):
    """留言信息（公开）"""
    id: int
    user_id: Optional[int]
    nickname: str
    content: str
    mood: str
    avatar: Optional[str]
    location: Optional[str]
    status: str
    reply_to_id: Optional[int]
    likes: int
    color: Optional[str]
    user: Optional[AuthorBrief] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageAdminInfo(MessageInfo):
    """留言管理列表项"""
    email: Optional[str] = None
    ip: Optional[str] = None
    browser: Optional[str] = None


class MessageStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
