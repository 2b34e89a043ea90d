"""
统一分页工具
提供标准化的分页查询功能
"""

import math
from typing import List, Optional, Any, Callable
from pydantic import BaseModel, ConfigDict, Field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


class PaginationParams(BaseModel):
    """分页参数"""
    page: int = Field(default=1, ge=1, description="页码，从1开始")
    limit: int = Field(default=10, ge=1, le=100, description="每页数量，最大100")

    @property
    def offset(self) -> int:
        """计算偏移量"""
        return (self.page - 1) * self.limit


class PageResult(BaseModel):
    """分页结果"""
    items: List[Any] = Field(description="数据列表")
    total: int = Field(description="总记录数")
    page: int = Field(description="当前页码")
    limit: int = Field(description="每页数量")
    total_pages: int = Field(description="总页数")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def create(
        cls,
        items: List[Any],
        total: int,
        page: int,
        limit: int
    ) -> "PageResult":
        """创建分页结果"""
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages
        )

    def to_dict(self, resource_name: str = "items") -> dict:
        """
        转换为字典（用于API响应）

        同时提供语义化的资源名称（如 articles）和通用的 items 字段
        """
        return {
            resource_name: self.items,
            "items": self.items,
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages
        }


async def paginate(
    db: AsyncSession,
    query,
    page: int = 1,
    limit: int = 10,
    transformer: Optional[Callable] = None
) -> PageResult:
    """
    通用分页查询

    Args:
        db: 数据库会话
        query: SQLAlchemy select 对象
        page: 页码（从1开始）
        limit: 每页数量
        transformer: 可选的数据转换函数，用于将ORM对象转换为字典

    Usage:
        query = select(Article).where(Article.status == "published")
        result = await paginate(db, query, page=1, limit=10)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    items = list(result.scalars().all())

    if transformer:
        items = [transformer(item) for item in items]

    return PageResult.create(
        items=items,
        total=total,
        page=page,
        limit=limit
    )


class Paginator:
    """
    分页器类

    越界的分页参数会被修正到合法区间，而不是直接报错

    Usage:
        paginator = Paginator(default_limit=12, max_limit=50)
        params = paginator.params(page, limit)
    """

    def __init__(
        self,
        default_limit: int = 10,
        max_limit: int = 100,
        min_limit: int = 1
    ):
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.min_limit = min_limit

    def _normalize_params(self, page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
        """规范化分页参数"""
        if page is None or page < 1:
            page = 1

        if limit is None:
            limit = self.default_limit
        else:
            limit = max(self.min_limit, min(limit, self.max_limit))

        return page, limit

    def params(self, page: Optional[int] = None, limit: Optional[int] = None) -> PaginationParams:
        page, limit = self._normalize_params(page, limit)
        return PaginationParams(page=page, limit=limit)

    def dependency(self):
        """生成 FastAPI 依赖"""
        def _get_params(page: Optional[int] = None, limit: Optional[int] = None) -> PaginationParams:
            return self.params(page, limit)
        return _get_params


# 默认分页器实例
default_paginator = Paginator()


def get_pagination_params(
    page: Optional[int] = None,
    limit: Optional[int] = None
) -> PaginationParams:
    """
    FastAPI 依赖注入函数

    Usage:
        @router.get("/items")
        async def get_items(pagination: PaginationParams = Depends(get_pagination_params)):
            ...
    """
    return default_paginator.params(page, limit)
