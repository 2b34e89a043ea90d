"""
博客业务逻辑
文章、分类、标签、评论
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, update, and_, or_

from core.batch import BatchResult, dedupe_ids, ownership_check, run_batch
from core.errors import (
    BusinessException, ErrorCode, NotFoundException, PermissionException, ValidationException
)
from core.pagination import PageResult, paginate
from core.security import CurrentUser, can_act

from .blog_models import BlogArticle, BlogCategory, BlogTag, BlogArticleTag, BlogComment
from .blog_schemas import (
    ArticleCreate, ArticleUpdate, ArticleQuery, ArticleListItem, ArticleInfo,
    CategoryCreate, CategoryUpdate, CategoryInfo, CategoryOrderItem,
    TagCreate, TagUpdate, TagInfo,
    CommentCreate, CommentInfo, CommentAdminInfo,
)

logger = logging.getLogger(__name__)

# 更新时允许显式置空的字段
NULLABLE_ARTICLE_FIELDS = {"summary", "cover_image", "category_id"}


def can_view_article(article: BlogArticle, user: Optional[CurrentUser]) -> bool:
    """已发布文章对所有人可见，草稿仅作者和管理员可见"""
    return article.status == "published" or can_act(user, article.author_id)


def _describe_article(article: BlogArticle) -> str:
    return f'文章 "{article.title}"'


class ArticleService:
    """文章服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============ 查询 ============

    def _build_conditions(self, query: ArticleQuery) -> list:
        conditions = []

        if query.category_id:
            conditions.append(BlogArticle.category_id == query.category_id)

        if query.status:
            conditions.append(BlogArticle.status == query.status)

        if query.author_id:
            conditions.append(BlogArticle.author_id == query.author_id)

        if query.keyword:
            conditions.append(
                or_(
                    BlogArticle.title.contains(query.keyword),
                    BlogArticle.summary.contains(query.keyword)
                )
            )

        # 标签筛选（子查询）
        if query.tag_id:
            tag_subquery = select(BlogArticleTag.article_id).where(BlogArticleTag.tag_id == query.tag_id)
            conditions.append(BlogArticle.id.in_(tag_subquery))

        return conditions

    async def list_articles(self, query: ArticleQuery, page: int = 1, limit: int = 10) -> PageResult:
        """获取文章列表（置顶优先，再按发布时间倒序）"""
        stmt = select(BlogArticle)
        conditions = self._build_conditions(query)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(
            BlogArticle.is_top.desc(),
            BlogArticle.published_at.desc(),
            BlogArticle.id.desc()
        ).execution_options(populate_existing=True)
        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda a: ArticleListItem.model_validate(a).model_dump()
        )

    async def get_article(self, article_id: int) -> Optional[BlogArticle]:
        """获取文章（总是从数据库重新加载关联数据）"""
        result = await self.db.execute(
            select(BlogArticle)
            .where(BlogArticle.id == article_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_article(self, article_id: int, user: Optional[CurrentUser]) -> BlogArticle:
        """获取当前用户可见的文章，不存在或不可见时均返回 404"""
        article = await self.get_article(article_id)
        if not article or not can_view_article(article, user):
            raise NotFoundException("文章")
        return article

    async def get_owned_article(self, article_id: int, user: CurrentUser, action: str = "操作") -> BlogArticle:
        """获取可由当前用户修改的文章"""
        article = await self.get_article(article_id)
        if not article:
            raise NotFoundException("文章")
        if not can_act(user, article.author_id):
            raise PermissionException(f"无权{action}此文章")
        return article

    def to_detail(self, article: BlogArticle) -> dict:
        return ArticleInfo.model_validate(article).model_dump()

    # ============ 写入 ============

    async def _ensure_category(self, category_id: Optional[int]):
        if category_id is None:
            return
        result = await self.db.execute(select(BlogCategory.id).where(BlogCategory.id == category_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundException("分类")

    async def _replace_tags(self, article_id: int, tag_ids: Sequence[int]):
        """用给定标签集合替换文章标签"""
        tag_ids = dedupe_ids(tag_ids)
        if tag_ids:
            result = await self.db.execute(select(BlogTag.id).where(BlogTag.id.in_(tag_ids)))
            existing = set(result.scalars().all())
            missing = [tid for tid in tag_ids if tid not in existing]
            if missing:
                raise NotFoundException("标签", missing[0])

        await self.db.execute(
            delete(BlogArticleTag).where(BlogArticleTag.article_id == article_id)
        )
        for tag_id in tag_ids:
            self.db.add(BlogArticleTag(article_id=article_id, tag_id=tag_id))

    async def create_article(self, data: ArticleCreate, author_id: int) -> BlogArticle:
        """创建文章"""
        await self._ensure_category(data.category_id)

        article = BlogArticle(**data.model_dump(exclude={"tag_ids"}), author_id=author_id, views=0)
        if data.status == "published":
            article.published_at = datetime.now()

        self.db.add(article)
        await self.db.flush()
        await self._replace_tags(article.id, data.tag_ids)
        await self.db.commit()

        logger.info(f"创建文章: {article.title} (ID: {article.id}, 作者: {author_id})")
        return await self.get_article(article.id)

    async def update_article(self, article: BlogArticle, data: ArticleUpdate) -> BlogArticle:
        """更新文章（部分更新）"""
        update_data = {
            key: value
            for key, value in data.model_dump(exclude={"tag_ids"}, exclude_unset=True).items()
            if value is not None or key in NULLABLE_ARTICLE_FIELDS
        }

        if "category_id" in update_data:
            await self._ensure_category(update_data["category_id"])

        # 首次发布时写入发布时间
        if update_data.get("status") == "published" and article.published_at is None:
            update_data["published_at"] = datetime.now()

        for key, value in update_data.items():
            setattr(article, key, value)

        if data.tag_ids is not None:
            await self._replace_tags(article.id, data.tag_ids)

        await self.db.commit()
        return await self.get_article(article.id)

    async def delete_article(self, article: BlogArticle):
        """删除文章及其标签关联、评论"""
        await self._delete_dependents([article.id])
        await self.db.delete(article)
        await self.db.commit()
        logger.info(f"删除文章: {article.title} (ID: {article.id})")

    async def _delete_dependents(self, article_ids: List[int]):
        # 先删回复再删顶级评论，parent_id 外键逐行校验
        await self.db.execute(delete(BlogComment).where(
            BlogComment.article_id.in_(article_ids), BlogComment.parent_id.is_not(None)
        ))
        await self.db.execute(delete(BlogComment).where(BlogComment.article_id.in_(article_ids)))
        await self.db.execute(delete(BlogArticleTag).where(BlogArticleTag.article_id.in_(article_ids)))

    # ============ 批量操作 ============

    async def batch_delete(self, ids: Sequence[int], user: CurrentUser) -> BatchResult:
        """批量删除（仅删除自己的文章，管理员不限）"""
        async def action(articles: List[BlogArticle]) -> int:
            article_ids = [a.id for a in articles]
            await self._delete_dependents(article_ids)
            await self.db.execute(delete(BlogArticle).where(BlogArticle.id.in_(article_ids)))
            return len(article_ids)

        return await run_batch(
            self.db, BlogArticle, ids, action,
            check=ownership_check(user, "author_id", "无权删除", describe=_describe_article),
            resource="文章", label="批量删除文章"
        )

    async def batch_update_status(self, ids: Sequence[int], status: str, user: CurrentUser) -> BatchResult:
        """批量修改状态，发布时仅为从未发布过的文章写入发布时间"""
        async def action(articles: List[BlogArticle]) -> int:
            now = datetime.now()
            for article in articles:
                article.status = status
                if status == "published" and article.published_at is None:
                    article.published_at = now
            return len(articles)

        return await run_batch(
            self.db, BlogArticle, ids, action,
            check=ownership_check(user, "author_id", "无权修改", describe=_describe_article),
            resource="文章", label="批量修改文章状态"
        )

    async def batch_update_top(self, ids: Sequence[int], is_top: bool) -> BatchResult:
        """批量置顶（管理员）"""
        async def action(articles: List[BlogArticle]) -> int:
            for article in articles:
                article.is_top = is_top
            return len(articles)

        return await run_batch(
            self.db, BlogArticle, ids, action,
            resource="文章", label="批量置顶文章"
        )

    @staticmethod
    async def increment_views(db: AsyncSession, article_id: int):
        """浏览量 +1（原子更新，不修改 updated_at）"""
        await db.execute(
            update(BlogArticle)
            .where(BlogArticle.id == article_id)
            .values(views=BlogArticle.views + 1, updated_at=BlogArticle.updated_at)
        )
        await db.commit()


class CategoryService:
    """分类服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _article_counts(
        self,
        category_ids: Optional[Sequence[int]] = None,
        published_only: bool = False
    ) -> Dict[int, int]:
        """按分类统计文章数"""
        stmt = select(BlogArticle.category_id, func.count(BlogArticle.id)).where(
            BlogArticle.category_id.is_not(None)
        )
        if category_ids is not None:
            stmt = stmt.where(BlogArticle.category_id.in_(category_ids))
        if published_only:
            stmt = stmt.where(BlogArticle.status == "published")
        stmt = stmt.group_by(BlogArticle.category_id)

        result = await self.db.execute(stmt)
        return {category_id: count for category_id, count in result.all()}

    def _to_info(self, category: BlogCategory, article_count: int) -> dict:
        info = CategoryInfo.model_validate(category)
        info.article_count = article_count
        return info.model_dump()

    async def list_categories(self) -> List[dict]:
        """获取所有分类（含已发布文章数）"""
        result = await self.db.execute(
            select(BlogCategory).order_by(BlogCategory.sort_order, BlogCategory.id)
        )
        categories = list(result.scalars().all())
        counts = await self._article_counts(published_only=True)
        return [self._to_info(c, counts.get(c.id, 0)) for c in categories]

    async def get_category(self, category_id: int) -> Optional[BlogCategory]:
        """获取分类"""
        result = await self.db.execute(
            select(BlogCategory).where(BlogCategory.id == category_id)
        )
        return result.scalar_one_or_none()

    async def require_category(self, category_id: int) -> BlogCategory:
        category = await self.get_category(category_id)
        if not category:
            raise NotFoundException("分类")
        return category

    async def get_category_detail(self, category_id: int, article_limit: int = 10) -> dict:
        """分类详情，附带最新发布的文章"""
        category = await self.require_category(category_id)
        counts = await self._article_counts([category.id], published_only=True)

        result = await self.db.execute(
            select(BlogArticle)
            .where(and_(BlogArticle.category_id == category.id, BlogArticle.status == "published"))
            .order_by(BlogArticle.published_at.desc(), BlogArticle.id.desc())
            .limit(article_limit)
            .execution_options(populate_existing=True)
        )
        data = self._to_info(category, counts.get(category.id, 0))
        data["articles"] = [ArticleListItem.model_validate(a).model_dump() for a in result.scalars().all()]
        return data

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None):
        stmt = select(BlogCategory.id).where(BlogCategory.name == name)
        if exclude_id is not None:
            stmt = stmt.where(BlogCategory.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise BusinessException(ErrorCode.RESOURCE_EXISTS, "分类名称已存在")

    async def create_category(self, data: CategoryCreate) -> dict:
        """创建分类"""
        await self._ensure_unique_name(data.name)
        category = BlogCategory(**data.model_dump())
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return self._to_info(category, 0)

    async def update_category(self, category_id: int, data: CategoryUpdate) -> dict:
        """更新分类"""
        category = await self.require_category(category_id)

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
        if update_data.get("name") and update_data["name"] != category.name:
            await self._ensure_unique_name(update_data["name"], exclude_id=category.id)

        for key, value in update_data.items():
            setattr(category, key, value)

        await self.db.commit()
        await self.db.refresh(category)
        counts = await self._article_counts([category.id], published_only=True)
        return self._to_info(category, counts.get(category.id, 0))

    async def delete_category(self, category_id: int):
        """删除分类（分类下仍有文章时拒绝）"""
        category = await self.require_category(category_id)
        count = (await self._article_counts([category.id])).get(category.id, 0)
        if count > 0:
            raise BusinessException(
                ErrorCode.BLOG_CATEGORY_HAS_ARTICLES,
                f"该分类下还有 {count} 篇文章，无法删除"
            )

        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"删除分类: {category.name} (ID: {category.id})")

    async def batch_delete(self, ids: Sequence[int]) -> BatchResult:
        """批量删除分类，仍有文章的分类逐项拒绝"""
        counts = await self._article_counts(dedupe_ids(ids))

        def check(category: BlogCategory) -> Optional[str]:
            count = counts.get(category.id, 0)
            if count:
                return f'分类 "{category.name}" 下还有 {count} 篇文章'
            return None

        async def action(categories: List[BlogCategory]) -> int:
            await self.db.execute(
                delete(BlogCategory).where(BlogCategory.id.in_([c.id for c in categories]))
            )
            return len(categories)

        return await run_batch(
            self.db, BlogCategory, ids, action, check=check,
            resource="分类", label="批量删除分类"
        )

    async def batch_update_order(self, orders: Sequence[CategoryOrderItem]) -> BatchResult:
        """批量更新排序，同一 ID 出现多次时以最后一次为准"""
        order_map = {item.id: item.sort_order for item in orders}

        async def action(categories: List[BlogCategory]) -> int:
            for category in categories:
                category.sort_order = order_map[category.id]
            return len(categories)

        return await run_batch(
            self.db, BlogCategory, list(order_map), action,
            resource="分类", label="批量更新分类排序"
        )

    async def batch_merge(self, source_ids: Sequence[int], target_id: int) -> BatchResult:
        """
        合并分类：源分类下的文章迁移到目标分类，然后删除源分类

        再次执行同一合并时源分类已不存在，结果为 0 个合并、逐项报告不存在
        """
        source_ids = dedupe_ids(source_ids)
        if target_id in source_ids:
            raise BusinessException(ErrorCode.BLOG_MERGE_INTO_SELF, "不能将分类合并到自己")
        target = await self.require_category(target_id)

        moved = {"articles": 0}

        async def action(sources: List[BlogCategory]) -> int:
            ids = [c.id for c in sources]
            count_result = await self.db.execute(
                select(func.count(BlogArticle.id)).where(BlogArticle.category_id.in_(ids))
            )
            moved["articles"] = count_result.scalar() or 0
            await self.db.execute(
                update(BlogArticle)
                .where(BlogArticle.category_id.in_(ids))
                .values(category_id=target.id)
            )
            await self.db.execute(delete(BlogCategory).where(BlogCategory.id.in_(ids)))
            return len(ids)

        result = await run_batch(
            self.db, BlogCategory, source_ids, action,
            resource="分类", label="合并分类"
        )
        counts = await self._article_counts([target.id])
        result.extra = {
            "affected_articles": moved["articles"],
            "target": {
                "id": target.id,
                "name": target.name,
                "article_count": counts.get(target.id, 0)
            }
        }
        return result


class TagService:
    """标签服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _article_counts(
        self,
        tag_ids: Optional[Sequence[int]] = None,
        published_only: bool = False
    ) -> Dict[int, int]:
        """按标签统计文章数"""
        stmt = (
            select(BlogArticleTag.tag_id, func.count(func.distinct(BlogArticleTag.article_id)))
            .join(BlogArticle, BlogArticle.id == BlogArticleTag.article_id)
        )
        if tag_ids is not None:
            stmt = stmt.where(BlogArticleTag.tag_id.in_(tag_ids))
        if published_only:
            stmt = stmt.where(BlogArticle.status == "published")
        stmt = stmt.group_by(BlogArticleTag.tag_id)

        result = await self.db.execute(stmt)
        return {tag_id: count for tag_id, count in result.all()}

    def _to_info(self, tag: BlogTag, article_count: int) -> dict:
        info = TagInfo.model_validate(tag)
        info.article_count = article_count
        return info.model_dump()

    async def list_tags(self) -> List[dict]:
        """获取所有标签（含已发布文章数）"""
        result = await self.db.execute(select(BlogTag).order_by(BlogTag.id))
        tags = list(result.scalars().all())
        counts = await self._article_counts(published_only=True)
        return [self._to_info(t, counts.get(t.id, 0)) for t in tags]

    async def get_tag(self, tag_id: int) -> Optional[BlogTag]:
        result = await self.db.execute(select(BlogTag).where(BlogTag.id == tag_id))
        return result.scalar_one_or_none()

    async def require_tag(self, tag_id: int) -> BlogTag:
        tag = await self.get_tag(tag_id)
        if not tag:
            raise NotFoundException("标签")
        return tag

    async def get_tag_detail(self, tag_id: int, article_limit: int = 10) -> dict:
        """标签详情，附带最新发布的文章"""
        tag = await self.require_tag(tag_id)
        counts = await self._article_counts([tag.id], published_only=True)

        result = await self.db.execute(
            select(BlogArticle)
            .join(BlogArticleTag, BlogArticleTag.article_id == BlogArticle.id)
            .where(and_(BlogArticleTag.tag_id == tag.id, BlogArticle.status == "published"))
            .order_by(BlogArticle.published_at.desc(), BlogArticle.id.desc())
            .limit(article_limit)
            .execution_options(populate_existing=True)
        )
        data = self._to_info(tag, counts.get(tag.id, 0))
        data["articles"] = [ArticleListItem.model_validate(a).model_dump() for a in result.scalars().all()]
        return data

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None):
        stmt = select(BlogTag.id).where(BlogTag.name == name)
        if exclude_id is not None:
            stmt = stmt.where(BlogTag.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise BusinessException(ErrorCode.RESOURCE_EXISTS, "标签名称已存在")

    async def create_tag(self, data: TagCreate) -> dict:
        """创建标签"""
        await self._ensure_unique_name(data.name)
        tag = BlogTag(name=data.name, color=data.color)
        self.db.add(tag)
        await self.db.commit()
        await self.db.refresh(tag)
        return self._to_info(tag, 0)

    async def update_tag(self, tag_id: int, data: TagUpdate) -> dict:
        """更新标签"""
        tag = await self.require_tag(tag_id)

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if update_data.get("name") and update_data["name"] != tag.name:
            await self._ensure_unique_name(update_data["name"], exclude_id=tag.id)

        for key, value in update_data.items():
            setattr(tag, key, value)

        await self.db.commit()
        await self.db.refresh(tag)
        counts = await self._article_counts([tag.id], published_only=True)
        return self._to_info(tag, counts.get(tag.id, 0))

    async def delete_tag(self, tag_id: int):
        """删除标签及其文章关联"""
        tag = await self.require_tag(tag_id)
        await self.db.execute(delete(BlogArticleTag).where(BlogArticleTag.tag_id == tag.id))
        await self.db.delete(tag)
        await self.db.commit()
        logger.info(f"删除标签: {tag.name} (ID: {tag.id})")

    async def batch_delete(self, ids: Sequence[int]) -> BatchResult:
        """批量删除标签"""
        async def action(tags: List[BlogTag]) -> int:
            tag_ids = [t.id for t in tags]
            await self.db.execute(delete(BlogArticleTag).where(BlogArticleTag.tag_id.in_(tag_ids)))
            await self.db.execute(delete(BlogTag).where(BlogTag.id.in_(tag_ids)))
            return len(tag_ids)

        return await run_batch(
            self.db, BlogTag, ids, action,
            resource="标签", label="批量删除标签"
        )

    async def batch_merge(self, source_ids: Sequence[int], target_id: int) -> BatchResult:
        """
        合并标签：源标签的文章关联迁移到目标标签（已有目标标签的文章不重复关联），
        然后删除源标签及其关联
        """
        source_ids = dedupe_ids(source_ids)
        if target_id in source_ids:
            raise BusinessException(ErrorCode.BLOG_MERGE_INTO_SELF, "不能将标签合并到自己")
        target = await self.require_tag(target_id)

        moved = {"articles": 0}

        async def action(sources: List[BlogTag]) -> int:
            ids = [t.id for t in sources]
            result = await self.db.execute(
                select(BlogArticleTag.article_id)
                .where(BlogArticleTag.tag_id.in_(ids))
                .distinct()
            )
            source_articles = set(result.scalars().all())
            moved["articles"] = len(source_articles)

            result = await self.db.execute(
                select(BlogArticleTag.article_id).where(BlogArticleTag.tag_id == target.id)
            )
            already_tagged = set(result.scalars().all())

            await self.db.execute(delete(BlogArticleTag).where(BlogArticleTag.tag_id.in_(ids)))
            for article_id in sorted(source_articles - already_tagged):
                self.db.add(BlogArticleTag(article_id=article_id, tag_id=target.id))
            await self.db.execute(delete(BlogTag).where(BlogTag.id.in_(ids)))
            return len(ids)

        result = await run_batch(
            self.db, BlogTag, source_ids, action,
            resource="标签", label="合并标签"
        )
        counts = await self._article_counts([target.id])
        result.extra = {
            "affected_articles": moved["articles"],
            "target": {
                "id": target.id,
                "name": target.name,
                "article_count": counts.get(target.id, 0)
            }
        }
        return result

    async def batch_update_color(self, ids: Sequence[int], color: str) -> BatchResult:
        """批量修改标签颜色"""
        async def action(tags: List[BlogTag]) -> int:
            for tag in tags:
                tag.color = color
            return len(tags)

        return await run_batch(
            self.db, BlogTag, ids, action,
            resource="标签", label="批量修改标签颜色"
        )


class CommentService:
    """评论服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_comment(self, comment_id: int) -> Optional[BlogComment]:
        result = await self.db.execute(
            select(BlogComment)
            .where(BlogComment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def require_comment(self, comment_id: int) -> BlogComment:
        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFoundException("评论")
        return comment

    async def _replies_for(self, parent_ids: List[int], approved_only: bool) -> Dict[int, List[dict]]:
        """批量加载直接回复，按父评论分组"""
        if not parent_ids:
            return {}
        conditions = [BlogComment.parent_id.in_(parent_ids)]
        if approved_only:
            conditions.append(BlogComment.is_approved.is_(True))
        result = await self.db.execute(
            select(BlogComment).where(and_(*conditions)).order_by(BlogComment.created_at, BlogComment.id)
            .execution_options(populate_existing=True)
        )
        grouped: Dict[int, List[dict]] = {}
        for reply in result.scalars().all():
            grouped.setdefault(reply.parent_id, []).append(CommentInfo.model_validate(reply).model_dump())
        return grouped

    async def _attach_replies(self, comments: List[BlogComment], approved_only: bool) -> List[dict]:
        replies = await self._replies_for([c.id for c in comments], approved_only)
        items = []
        for comment in comments:
            item = CommentInfo.model_validate(comment).model_dump()
            item["replies"] = replies.get(comment.id, [])
            items.append(item)
        return items

    async def list_by_article(
        self,
        article_id: int,
        user: Optional[CurrentUser],
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """文章评论列表（顶级评论分页，附带回复）；非管理员只看已审核评论"""
        approved_only = not (user and user.is_admin)
        conditions = [BlogComment.article_id == article_id, BlogComment.parent_id.is_(None)]
        if approved_only:
            conditions.append(BlogComment.is_approved.is_(True))

        stmt = (
            select(BlogComment)
            .where(and_(*conditions))
            .order_by(BlogComment.created_at.desc(), BlogComment.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await paginate(self.db, stmt, page, limit)
        result.items = await self._attach_replies(result.items, approved_only)
        return result

    async def approved_tree(self, article_id: int) -> List[dict]:
        """文章详情中展示的已审核评论"""
        result = await self.db.execute(
            select(BlogComment)
            .where(and_(
                BlogComment.article_id == article_id,
                BlogComment.parent_id.is_(None),
                BlogComment.is_approved.is_(True)
            ))
            .order_by(BlogComment.created_at.desc(), BlogComment.id.desc())
            .execution_options(populate_existing=True)
        )
        return await self._attach_replies(list(result.scalars().all()), approved_only=True)

    async def list_comments(
        self,
        keyword: Optional[str] = None,
        status: str = "all",
        article_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """评论管理列表"""
        conditions = []
        if keyword:
            conditions.append(or_(
                BlogComment.content.contains(keyword),
                BlogComment.nickname.contains(keyword)
            ))
        if status == "approved":
            conditions.append(BlogComment.is_approved.is_(True))
        elif status == "pending":
            conditions.append(BlogComment.is_approved.is_(False))
        if article_id:
            conditions.append(BlogComment.article_id == article_id)

        stmt = select(BlogComment)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(BlogComment.created_at.desc(), BlogComment.id.desc())
        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda c: CommentAdminInfo.model_validate(c).model_dump()
        )

    async def create_comment(
        self,
        article: BlogArticle,
        data: CommentCreate,
        user: Optional[CurrentUser]
    ) -> BlogComment:
        """发表评论：登录用户的评论自动通过审核，匿名评论待审核"""
        if data.parent_id:
            parent = await self.get_comment(data.parent_id)
            if not parent or parent.article_id != article.id:
                raise BusinessException(ErrorCode.BLOG_INVALID_PARENT, "父评论不存在或不属于该文章")
            if parent.parent_id is not None:
                raise BusinessException(ErrorCode.BLOG_INVALID_PARENT, "只能回复顶级评论")

        if user:
            nickname = data.nickname or user.username
            email = data.email or user.email
        else:
            if not data.nickname or not data.nickname.strip():
                raise ValidationException("请提供昵称")
            nickname = data.nickname.strip()
            email = data.email

        comment = BlogComment(
            article_id=article.id,
            user_id=user.id if user else None,
            parent_id=data.parent_id,
            nickname=nickname,
            email=email,
            content=data.content,
            is_approved=user is not None
        )
        self.db.add(comment)
        await self.db.commit()
        return await self.get_comment(comment.id)

    async def update_comment(self, comment: BlogComment, content: str) -> BlogComment:
        comment.content = content
        await self.db.commit()
        return await self.get_comment(comment.id)

    async def delete_comment(self, comment: BlogComment):
        """删除评论及其直接回复"""
        await self.db.execute(delete(BlogComment).where(BlogComment.parent_id == comment.id))
        await self.db.delete(comment)
        await self.db.commit()

    async def set_approval(self, comment: BlogComment, is_approved: bool) -> BlogComment:
        comment.is_approved = is_approved
        await self.db.commit()
        return await self.get_comment(comment.id)

    async def batch_delete(self, ids: Sequence[int]) -> BatchResult:
        """批量删除评论（连同直接回复）"""
        async def action(comments: List[BlogComment]) -> int:
            comment_ids = [c.id for c in comments]
            await self.db.execute(delete(BlogComment).where(BlogComment.parent_id.in_(comment_ids)))
            await self.db.execute(delete(BlogComment).where(BlogComment.id.in_(comment_ids)))
            return len(comment_ids)

        return await run_batch(
            self.db, BlogComment, ids, action,
            resource="评论", label="批量删除评论"
        )

    async def batch_approve(self, ids: Sequence[int], is_approved: bool = True) -> BatchResult:
        """批量审核评论"""
        async def action(comments: List[BlogComment]) -> int:
            for comment in comments:
                comment.is_approved = is_approved
            return len(comments)

        return await run_batch(
            self.db, BlogComment, ids, action,
            resource="评论", label="批量审核评论"
        )
