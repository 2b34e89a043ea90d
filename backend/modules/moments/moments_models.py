"""
动态（说说）数据模型
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models import User


class Moment(Base):
    """动态"""
    __tablename__ = "moments"
    __table_args__ = {"extend_existing": True, "comment": "动态表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    content: Mapped[str] = mapped_column(Text)
    images: Mapped[List[str]] = mapped_column(JSON, default=list)  # 图片URL，按顺序最多9张
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    visibility: Mapped[str] = mapped_column(String(20), default="public", index=True)  # public/private/friends
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    published_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    user: Mapped["User"] = relationship(User, lazy="selectin", viewonly=True)
