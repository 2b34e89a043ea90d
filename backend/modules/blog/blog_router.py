"""
博客API路由
文章、分类、标签、评论
"""

from typing import Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundException, PermissionException
from core.pagination import PaginationParams, get_pagination_params
from core.security import CurrentUser, can_act, get_current_user, get_optional_user, require_admin
from schemas import BatchIds, BatchMerge, success, created, paginate
from utils.background_tasks import BackgroundTaskHelper

from .blog_schemas import (
    ArticleCreate, ArticleUpdate, ArticleQuery, ArticleStatus, ArticleStatusBatch, ArticleTopBatch,
    CategoryCreate, CategoryUpdate, CategoryOrderUpdate,
    TagCreate, TagUpdate, TagColorUpdate,
    CommentCreate, CommentUpdate, CommentApprove, CommentBatchApprove, CommentInfo, CommentAdminInfo,
)
from .blog_services import ArticleService, CategoryService, TagService, CommentService

router = APIRouter()


# ============ 文章接口 ============

@router.get("/articles")
async def list_articles(
    category_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    keyword: Optional[str] = None,
    status: Optional[ArticleStatus] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """获取文章列表（非管理员只能看到已发布文章）"""
    if not (user and user.is_admin):
        status = "published"

    query = ArticleQuery(category_id=category_id, tag_id=tag_id, keyword=keyword, status=status)
    result = await ArticleService(db).list_articles(query, pagination.page, pagination.limit)
    return paginate(result, "articles")


@router.post("/articles/batch-delete")
async def batch_delete_articles(
    data: BatchIds,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量删除文章"""
    result = await ArticleService(db).batch_delete(data.ids, user)
    return success(result.to_dict(), "批量删除完成")


@router.post("/articles/batch-update-status")
async def batch_update_article_status(
    data: ArticleStatusBatch,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量修改文章状态"""
    result = await ArticleService(db).batch_update_status(data.ids, data.status, user)
    return success(result.to_dict(), "批量修改状态完成")


@router.post("/articles/batch-update-top")
async def batch_update_article_top(
    data: ArticleTopBatch,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量置顶/取消置顶（管理员）"""
    result = await ArticleService(db).batch_update_top(data.ids, data.is_top)
    return success(result.to_dict(), "批量置顶操作完成")


@router.get("/articles/{article_id}")
async def get_article(
    article_id: int,
    background_tasks: BackgroundTasks,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """获取文章详情（附带已审核评论），浏览量在响应后异步累加"""
    service = ArticleService(db)
    article = await service.get_visible_article(article_id, user)

    data = service.to_detail(article)
    data["comments"] = await CommentService(db).approved_tree(article.id)

    background_tasks.add_task(BackgroundTaskHelper.run_with_db, ArticleService.increment_views, article.id)
    return success(data)


@router.post("/articles", status_code=201)
async def create_article(
    data: ArticleCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """创建文章"""
    service = ArticleService(db)
    article = await service.create_article(data, user.id)
    return created(service.to_detail(article), "文章创建成功")


@router.put("/articles/{article_id}")
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新文章（作者或管理员）"""
    service = ArticleService(db)
    article = await service.get_owned_article(article_id, user, "修改")
    article = await service.update_article(article, data)
    return success(service.to_detail(article), "文章更新成功")


@router.delete("/articles/{article_id}")
async def delete_article(
    article_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除文章（作者或管理员）"""
    service = ArticleService(db)
    article = await service.get_owned_article(article_id, user, "删除")
    await service.delete_article(article)
    return success(message="文章删除成功")


# ============ 文章评论 ============

@router.get("/articles/{article_id}/comments")
async def list_article_comments(
    article_id: int,
    pagination: PaginationParams = Depends(get_pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """文章评论列表"""
    article = await ArticleService(db).get_visible_article(article_id, user)
    result = await CommentService(db).list_by_article(article.id, user, pagination.page, pagination.limit)
    return paginate(result, "comments")


@router.post("/articles/{article_id}/comments", status_code=201)
async def create_comment(
    article_id: int,
    data: CommentCreate,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """发表评论，匿名评论需审核后显示"""
    article = await ArticleService(db).get_visible_article(article_id, user)
    comment = await CommentService(db).create_comment(article, data, user)
    message = "评论发表成功" if comment.is_approved else "评论已提交，等待审核"
    return created(CommentInfo.model_validate(comment).model_dump(), message)


# ============ 分类接口 ============

@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    """获取分类列表"""
    return success(await CategoryService(db).list_categories())


@router.post("/categories/batch-delete")
async def batch_delete_categories(
    data: BatchIds,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量删除分类"""
    result = await CategoryService(db).batch_delete(data.ids)
    return success(result.to_dict(), "批量删除完成")


@router.post("/categories/batch-update-order")
async def batch_update_category_order(
    data: CategoryOrderUpdate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量更新分类排序"""
    result = await CategoryService(db).batch_update_order(data.orders)
    return success(result.to_dict(), "排序更新完成")


@router.post("/categories/batch-merge")
async def batch_merge_categories(
    data: BatchMerge,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """合并分类"""
    result = await CategoryService(db).batch_merge(data.source_ids, data.target_id)
    return success(result.to_dict(), "分类合并完成")


@router.get("/categories/{category_id}")
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    """获取分类详情"""
    return success(await CategoryService(db).get_category_detail(category_id))


@router.post("/categories", status_code=201)
async def create_category(
    data: CategoryCreate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """创建分类"""
    return created(await CategoryService(db).create_category(data), "分类创建成功")


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """更新分类"""
    return success(await CategoryService(db).update_category(category_id, data), "分类更新成功")


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """删除分类"""
    await CategoryService(db).delete_category(category_id)
    return success(message="分类删除成功")


# ============ 标签接口 ============

@router.get("/tags")
async def list_tags(db: AsyncSession = Depends(get_db)):
    """获取标签列表"""
    return success(await TagService(db).list_tags())


@router.post("/tags/batch-delete")
async def batch_delete_tags(
    data: BatchIds,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量删除标签"""
    result = await TagService(db).batch_delete(data.ids)
    return success(result.to_dict(), "批量删除完成")


@router.post("/tags/batch-merge")
async def batch_merge_tags(
    data: BatchMerge,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """合并标签"""
    result = await TagService(db).batch_merge(data.source_ids, data.target_id)
    return success(result.to_dict(), "标签合并完成")


@router.post("/tags/batch-update-color")
async def batch_update_tag_color(
    data: TagColorUpdate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量修改标签颜色"""
    result = await TagService(db).batch_update_color(data.ids, data.color)
    return success(result.to_dict(), "批量修改颜色完成")


@router.get("/tags/{tag_id}")
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    """获取标签详情"""
    return success(await TagService(db).get_tag_detail(tag_id))


@router.post("/tags", status_code=201)
async def create_tag(
    data: TagCreate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """创建标签"""
    return created(await TagService(db).create_tag(data), "标签创建成功")


@router.put("/tags/{tag_id}")
async def update_tag(
    tag_id: int,
    data: TagUpdate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """更新标签"""
    return success(await TagService(db).update_tag(tag_id, data), "标签更新成功")


@router.delete("/tags/{tag_id}")
async def delete_tag(
    tag_id: int,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """删除标签"""
    await TagService(db).delete_tag(tag_id)
    return success(message="标签删除成功")


# ============ 评论管理 ============

@router.get("/comments")
async def list_comments(
    keyword: Optional[str] = None,
    status: Literal["approved", "pending", "all"] = "all",
    article_id: Optional[int] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """评论管理列表（管理员）"""
    result = await CommentService(db).list_comments(
        keyword=keyword,
        status=status,
        article_id=article_id,
        page=pagination.page,
        limit=pagination.limit
    )
    return paginate(result, "comments")


@router.post("/comments/batch-delete")
async def batch_delete_comments(
    data: BatchIds,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量删除评论"""
    result = await CommentService(db).batch_delete(data.ids)
    return success(result.to_dict(), "批量删除完成")


@router.post("/comments/batch-approve")
async def batch_approve_comments(
    data: CommentBatchApprove,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量审核评论"""
    result = await CommentService(db).batch_approve(data.ids, data.is_approved)
    return success(result.to_dict(), "批量审核完成")


async def _owned_comment(service: CommentService, comment_id: int, user: CurrentUser, action: str):
    comment = await service.get_comment(comment_id)
    if not comment:
        raise NotFoundException("评论")
    if not can_act(user, comment.user_id):
        raise PermissionException(f"无权{action}此评论")
    return comment


@router.put("/comments/{comment_id}")
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """编辑评论（评论者或管理员）"""
    service = CommentService(db)
    comment = await _owned_comment(service, comment_id, user, "修改")
    comment = await service.update_comment(comment, data.content)
    return success(CommentInfo.model_validate(comment).model_dump(), "评论更新成功")


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除评论（评论者或管理员），直接回复一并删除"""
    service = CommentService(db)
    comment = await _owned_comment(service, comment_id, user, "删除")
    await service.delete_comment(comment)
    return success(message="评论删除成功")


@router.put("/comments/{comment_id}/approve")
async def approve_comment(
    comment_id: int,
    data: CommentApprove,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """审核评论（管理员）"""
    service = CommentService(db)
    comment = await service.require_comment(comment_id)
    comment = await service.set_approval(comment, data.is_approved)
    return success(CommentAdminInfo.model_validate(comment).model_dump(), "审核完成")
