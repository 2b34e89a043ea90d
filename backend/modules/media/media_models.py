"""
媒体库数据模型
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models import User


class Media(Base):
    """上传的媒体文件"""
    __tablename__ = "media"
    __table_args__ = {"extend_existing": True, "comment": "媒体文件表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255))  # 展示用的原始文件名
    stored_name: Mapped[str] = mapped_column(String(255), unique=True)
    file_path: Mapped[str] = mapped_column(String(500))  # 相对上传目录的路径
    file_url: Mapped[str] = mapped_column(String(500))
    file_size: Mapped[int] = mapped_column(Integer)
    mime_type: Mapped[str] = mapped_column(String(100), index=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    uploader_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    storage_type: Mapped[str] = mapped_column(String(20), default="local")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    uploader: Mapped["User"] = relationship(User, lazy="selectin", viewonly=True)
