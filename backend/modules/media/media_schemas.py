"""
媒体库数据验证模式
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas import AuthorBrief


class MediaRename(BaseModel):
    """重命名"""
    filename: str = Field(..., min_length=1, max_length=255)

    @field_validator('filename')
    @classmethod
    def strip_filename(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('文件名不能为空')
        return v


class MediaInfo(BaseModel):
    """媒体文件信息"""
    id: int
    filename: str
    stored_name: str
    file_url: str
    file_size: int
    mime_type: str
    width: Optional[int]
    height: Optional[int]
    uploader_id: int
    uploader: Optional[AuthorBrief] = None
    usage_count: int
    storage_type: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
