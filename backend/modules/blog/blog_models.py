"""
博客数据模型
表名遵循隔离协议：blog_前缀
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models import User


class BlogCategory(Base):
    """博客分类"""
    __tablename__ = "blog_categories"
    __table_args__ = {"extend_existing": True, "comment": "博客分类表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class BlogArticle(Base):
    """博客文章"""
    __tablename__ = "blog_articles"
    __table_args__ = {"extend_existing": True, "comment": "博客文章表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    summary: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text)
    cover_image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # 分类（删除分类前必须先迁移文章）
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("blog_categories.id"),
        nullable=True,
        index=True
    )

    # 作者
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    # 状态
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)  # 状态：draft草稿, published已发布
    is_top: Mapped[bool] = mapped_column(Boolean, default=False)

    # 统计
    views: Mapped[int] = mapped_column(Integer, default=0)

    # 时间（首次发布时写入，之后不再变化）
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 关联关系
    author: Mapped["User"] = relationship(User, lazy="selectin", viewonly=True)
    category: Mapped[Optional["BlogCategory"]] = relationship("BlogCategory", lazy="selectin", viewonly=True)
    tags: Mapped[list["BlogTag"]] = relationship(
        "BlogTag",
        secondary="blog_article_tags",
        lazy="selectin",
        viewonly=True,
        order_by="BlogTag.id"
    )


class BlogTag(Base):
    """博客标签"""
    __tablename__ = "blog_tags"
    __table_args__ = {"extend_existing": True, "comment": "博客标签表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    color: Mapped[str] = mapped_column(String(20), default="#409EFF")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class BlogArticleTag(Base):
    """文章标签关联"""
    __tablename__ = "blog_article_tags"
    __table_args__ = (
        UniqueConstraint("article_id", "tag_id", name="uq_article_tag"),
        {"extend_existing": True, "comment": "文章与标签关联表"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(Integer, ForeignKey("blog_articles.id"), index=True)
    tag_id: Mapped[int] = mapped_column(Integer, ForeignKey("blog_tags.id"), index=True)


class BlogComment(Base):
    """
    文章评论

    parent_id 指向同表的顶级评论，只允许一层回复。
    删除评论时由业务层显式删除其直接回复。
    """
    __tablename__ = "blog_comments"
    __table_args__ = {"extend_existing": True, "comment": "文章评论表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(Integer, ForeignKey("blog_articles.id"), index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("blog_comments.id"), nullable=True, index=True)
    nickname: Mapped[str] = mapped_column(String(50))
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    content: Mapped[str] = mapped_column(Text)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    user: Mapped[Optional["User"]] = relationship(User, lazy="selectin", viewonly=True)
