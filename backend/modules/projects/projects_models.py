"""
项目作品集数据模型
"""

from datetime import date, datetime
from typing import Optional, List
from sqlalchemy import String, Integer, Boolean, Date, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models import User


class Project(Base):
    """项目"""
    __tablename__ = "projects"
    __table_args__ = {"extend_existing": True, "comment": "项目展示表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    subtitle: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[str] = mapped_column(Text)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # Markdown 详细介绍

    # 视觉元素
    cover_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    images: Mapped[List[str]] = mapped_column(JSON, default=list)  # 截图，最多10张
    demo_video: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # 项目信息
    tech_stack: Mapped[List[str]] = mapped_column(JSON, default=list)
    project_type: Mapped[str] = mapped_column(String(20), default="web", index=True)  # web/mobile/desktop/backend/fullstack/other
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)  # completed/in_progress/archived/draft

    # 链接
    github_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    demo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    documentation_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # 时间与规模
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 开发周期（天）
    team_size: Mapped[int] = mapped_column(Integer, default=1)

    # 展示控制
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_open_source: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, index=True)  # 越大越靠前
    view_count: Mapped[int] = mapped_column(Integer, default=0)

    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    author: Mapped["User"] = relationship(User, lazy="selectin", viewonly=True)
