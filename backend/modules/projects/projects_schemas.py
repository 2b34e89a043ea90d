"""
项目数据验证模式
"""

import re
from datetime import date, datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas import AuthorBrief, BatchIds

ProjectType = Literal["web", "mobile", "desktop", "backend", "fullstack", "other"]
ProjectStatus = Literal["completed", "in_progress", "archived", "draft"]

URL_PATTERN = re.compile(r'^https?://.+')
MAX_IMAGES = 10
URL_FIELDS = ('cover_image', 'demo_video', 'github_url', 'demo_url', 'documentation_url')


def _check_url(value: Optional[str]) -> Optional[str]:
    if value and not URL_PATTERN.match(value):
        raise ValueError('必须是有效的 http(s) URL')
    return value or None


def _check_images(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    for url in value:
        if not URL_PATTERN.match(url):
            raise ValueError('图片必须是有效的 http(s) URL')
    return value


def _check_tech_stack(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    value = [item.strip() for item in value if item and item.strip()]
    if not value:
        raise ValueError('至少需要一个技术栈')
    return value


class ProjectBase(BaseModel):
    subtitle: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    cover_image: Optional[str] = Field(None, max_length=500)
    images: List[str] = Field(default_factory=list, max_length=MAX_IMAGES)
    demo_video: Optional[str] = Field(None, max_length=500)
    project_type: ProjectType = "web"
    status: ProjectStatus = "draft"
    github_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    documentation_url: Optional[str] = Field(None, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=0)
    team_size: int = Field(1, ge=1)
    is_featured: bool = False
    is_open_source: bool = False
    display_order: int = 0
    category: Optional[str] = Field(None, max_length=50)
    tags: List[str] = []


class ProjectCreate(ProjectBase):
    """创建项目"""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    tech_stack: List[str] = Field(..., min_length=1)

    @field_validator(*URL_FIELDS)
    @classmethod
    def check_url(cls, v):
        return _check_url(v)

    @field_validator('tech_stack')
    @classmethod
    def check_tech_stack(cls, v):
        return _check_tech_stack(v)

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_images(v)


class ProjectUpdate(BaseModel):
    """更新项目（author_id、view_count 不可修改）"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    subtitle: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    cover_image: Optional[str] = Field(None, max_length=500)
    images: Optional[List[str]] = Field(None, max_length=MAX_IMAGES)
    demo_video: Optional[str] = Field(None, max_length=500)
    tech_stack: Optional[List[str]] = None
    project_type: Optional[ProjectType] = None
    status: Optional[ProjectStatus] = None
    github_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    documentation_url: Optional[str] = Field(None, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=0)
    team_size: Optional[int] = Field(None, ge=1)
    is_featured: Optional[bool] = None
    is_open_source: Optional[bool] = None
    display_order: Optional[int] = None
    category: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None

    @field_validator(*URL_FIELDS)
    @classmethod
    def check_url(cls, v):
        return _check_url(v)

    @field_validator('tech_stack')
    @classmethod
    def check_tech_stack(cls, v):
        return _check_tech_stack(v)

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_images(v)


class ProjectInfo(BaseModel):
    """项目信息"""
    id: int
    title: str
    subtitle: Optional[str]
    description: str
    content: Optional[str]
    cover_image: Optional[str]
    images: List[str] = []
    demo_video: Optional[str]
    tech_stack: List[str] = []
    project_type: str
    status: str
    github_url: Optional[str]
    demo_url: Optional[str]
    documentation_url: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    duration: Optional[int]
    team_size: int
    is_featured: bool
    is_open_source: bool
    display_order: int
    view_count: int
    author_id: int
    author: Optional[AuthorBrief] = None
    category: Optional[str]
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('images', 'tech_stack', 'tags', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class ProjectStatusBatch(BatchIds):
    status: ProjectStatus


class ProjectFeaturedBatch(BatchIds):
    is_featured: bool
