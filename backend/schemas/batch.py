"""
批量操作请求模式
"""

from typing import List
from pydantic import BaseModel, Field, PositiveInt


class BatchIds(BaseModel):
    """批量操作的目标 ID 列表（不能为空）"""
    ids: List[PositiveInt] = Field(..., min_length=1)


class BatchMerge(BaseModel):
    """合并请求：把 source_ids 合并到 target_id"""
    source_ids: List[PositiveInt] = Field(..., min_length=1)
    target_id: PositiveInt
