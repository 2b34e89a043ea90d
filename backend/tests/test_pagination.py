"""
分页模块测试
"""
import pytest
from sqlalchemy import select

from core.pagination import (
    PaginationParams,
    PageResult,
    Paginator,
    paginate,
    get_pagination_params
)
from models import User


class TestPagination:
    """分页工具测试"""

    def test_pagination_params(self):
        """测试分页参数模型"""
        p = PaginationParams()
        assert p.page == 1
        assert p.limit == 10
        assert p.offset == 0

        p = PaginationParams(page=3, limit=20)
        assert p.offset == 40

    def test_page_result(self):
        """测试分页结果模型"""
        result = PageResult.create([1, 2, 3], total=10, page=1, limit=3)
        assert result.total_pages == 4

        d = result.to_dict("articles")
        assert d["articles"] == [1, 2, 3]
        assert d["items"] == [1, 2, 3]
        assert d["total"] == 10
        assert d["totalPages"] == 4

    def test_page_result_empty(self):
        result = PageResult.create([], total=0, page=1, limit=10)
        assert result.total_pages == 0

    def test_paginator_clamps(self):
        """越界参数被修正而不是报错"""
        paginator = Paginator(default_limit=12, max_limit=50)
        assert paginator.params().limit == 12
        assert paginator.params(page=0, limit=0).page == 1
        assert paginator.params(page=0, limit=0).limit == 1
        assert paginator.params(page=-5, limit=500).limit == 50
        assert paginator.params(page=7, limit=20).page == 7

    def test_default_dependency(self):
        p = get_pagination_params(page=None, limit=1000)
        assert p.page == 1
        assert p.limit == 100

    @pytest.mark.asyncio
    async def test_paginate_query(self, db_session):
        """测试数据库分页查询"""
        for i in range(5):
            db_session.add(User(username=f"user{i}", email=f"user{i}@example.com", password_hash="x"))
        await db_session.commit()

        query = select(User).order_by(User.id)
        result = await paginate(db_session, query, page=2, limit=2, transformer=lambda u: u.username)

        assert result.total == 5
        assert result.total_pages == 3
        assert result.items == ["user2", "user3"]

        result = await paginate(db_session, query, page=10, limit=2)
        assert result.items == []
        assert result.total == 5
