"""
博客数据验证模式
"""

import re
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field, PositiveInt, field_validator

from schemas import AuthorBrief, BatchIds

ArticleStatus = Literal["draft", "published"]

HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')


def validate_hex_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not HEX_COLOR_PATTERN.match(value):
        raise ValueError('颜色必须是有效的十六进制颜色值，如 #409EFF')
    return value


def strip_required_name(value: Optional[str], label: str) -> Optional[str]:
    """去除首尾空白，空白名称视为缺失"""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{label}不能为空")
    return value


# ============ 分类 ============

class CategoryCreate(BaseModel):
    """创建分类"""
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    sort_order: int = Field(0, ge=0)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return strip_required_name(v, "分类名称")


class CategoryUpdate(BaseModel):
    """更新分类"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = Field(None, ge=0)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return strip_required_name(v, "分类名称")


class CategoryBrief(BaseModel):
    """分类摘要"""
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class CategoryInfo(BaseModel):
    """分类信息"""
    id: int
    name: str
    description: Optional[str]
    sort_order: int
    article_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryOrderItem(BaseModel):
    id: PositiveInt
    sort_order: int = Field(..., ge=0)


class CategoryOrderUpdate(BaseModel):
    """批量排序"""
    orders: List[CategoryOrderItem] = Field(..., min_length=1)


# ============ 标签 ============

class TagCreate(BaseModel):
    """创建标签"""
    name: str = Field(..., min_length=1, max_length=50)
    color: str = "#409EFF"

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return strip_required_name(v, "标签名称")

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


class TagUpdate(BaseModel):
    """更新标签"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return strip_required_name(v, "标签名称")

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


class TagBrief(BaseModel):
    """标签摘要"""
    id: int
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class TagInfo(BaseModel):
    """标签信息"""
    id: int
    name: str
    color: str
    article_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagColorUpdate(BatchIds):
    """批量修改标签颜色"""
    color: str

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


# ============ 文章 ============

class ArticleCreate(BaseModel):
    """创建文章"""
    title: str = Field(..., min_length=1, max_length=200)
    summary: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1)
    cover_image: Optional[str] = Field(None, max_length=255)
    category_id: Optional[PositiveInt] = None
    tag_ids: List[PositiveInt] = []
    status: ArticleStatus = "draft"
    is_top: bool = False


class ArticleUpdate(BaseModel):
    """更新文章（只更新请求中出现的字段）"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    summary: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    cover_image: Optional[str] = Field(None, max_length=255)
    category_id: Optional[PositiveInt] = None
    tag_ids: Optional[List[PositiveInt]] = None
    status: Optional[ArticleStatus] = None
    is_top: Optional[bool] = None


class ArticleQuery(BaseModel):
    """文章列表筛选条件"""
    category_id: Optional[int] = None
    tag_id: Optional[int] = None
    keyword: Optional[str] = None
    status: Optional[ArticleStatus] = None
    author_id: Optional[int] = None


class ArticleListItem(BaseModel):
    """文章列表项"""
    id: int
    title: str
    summary: Optional[str]
    cover_image: Optional[str]
    category_id: Optional[int]
    category: Optional[CategoryBrief] = None
    author_id: int
    author: Optional[AuthorBrief] = None
    status: str
    is_top: bool
    views: int
    tags: List[TagBrief] = []
    published_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ArticleInfo(ArticleListItem):
    """文章详情"""
    content: str
    updated_at: datetime


class ArticleStatusBatch(BatchIds):
    """批量修改文章状态"""
    status: ArticleStatus


class ArticleTopBatch(BatchIds):
    """批量置顶/取消置顶"""
    is_top: bool


# ============ 评论 ============

class CommentCreate(BaseModel):
    """发表评论（匿名时必须提供昵称）"""
    content: str = Field(..., min_length=1, max_length=1000)
    nickname: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    parent_id: Optional[PositiveInt] = None


class CommentUpdate(BaseModel):
    """编辑评论"""
    content: str = Field(..., min_length=1, max_length=1000)


class CommentApprove(BaseModel):
    """审核评论"""
    is_approved: bool = True


class CommentBatchApprove(BatchIds):
    """批量审核评论"""
    is_approved: bool = True


class CommentInfo(BaseModel):
    """评论信息"""
    id: int
    article_id: int
    user_id: Optional[int]
    parent_id: Optional[int]
    nickname: str
    content: str
    is_approved: bool
    user: Optional[AuthorBrief] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentAdminInfo(CommentInfo):
    """评论管理列表项"""
    email: Optional[str] = None
