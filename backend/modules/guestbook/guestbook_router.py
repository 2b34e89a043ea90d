"""
留言板API路由
"""

from typing import Literal, Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.pagination import PaginationParams, get_pagination_params
from core.security import CurrentUser, get_current_user, get_optional_user, require_admin
from schemas import BatchIds, success, created, paginate
from utils.request import get_client_ip, get_user_agent

from .guestbook_schemas import (
    MessageCreate, MessageUpdate, MessageStatusUpdate, MessageBatchApprove,
    MessageInfo, MessageAdminInfo, Mood
)
from .guestbook_services import MessageService

router = APIRouter()

STATUS_TEXT = {
    "approved": "已通过",
    "rejected": "已拒绝",
    "pending": "待审核"
}


@router.get("")
async def list_messages(
    keyword: Optional[str] = None,
    mood: Optional[Mood] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db)
):
    """留言墙"""
    result = await MessageService(db).list_public(
        keyword=keyword, mood=mood, page=pagination.page, limit=pagination.limit
    )
    return paginate(result, "messages")


@router.get("/admin")
async def list_admin_messages(
    keyword: Optional[str] = None,
    status: Literal["pending", "approved", "rejected", "all"] = "all",
    pagination: PaginationParams = Depends(get_pagination_params),
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """留言管理列表（管理员）"""
    result = await MessageService(db).list_admin(
        keyword=keyword, status=status, page=pagination.page, limit=pagination.limit
    )
    return paginate(result, "messages")


@router.get("/stats")
async def message_stats(
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """留言统计（管理员）"""
    return success(await MessageService(db).stats(), "统计获取成功")


@router.post("/batch-delete")
async def batch_delete_messages(
    data: BatchIds,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量删除留言（管理员）"""
    result = await MessageService(db).batch_delete(data.ids)
    return success(result.to_dict(), f"成功删除 {result.affected_count} 条留言")


@router.post("/batch-approve")
async def batch_approve_messages(
    data: MessageBatchApprove,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量审核留言（管理员）"""
    result = await MessageService(db).batch_set_status(data.ids, data.status)
    return success(result.to_dict(), f"{result.affected_count} 条留言{STATUS_TEXT[data.status]}")


@router.post("", status_code=201)
async def create_message(
    data: MessageCreate,
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """发表留言（可匿名）"""
    message = await MessageService(db).create_message(
        data, user, ip=get_client_ip(request), user_agent=get_user_agent(request)
    )
    return created(MessageInfo.model_validate(message).model_dump(), "留言发表成功")


@router.put("/{message_id}")
async def update_message(
    message_id: int,
    data: MessageUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """编辑留言（作者或管理员）"""
    service = MessageService(db)
    message = await service.get_owned_message(message_id, user, "修改")
    message = await service.update_message(message, data)
    return success(MessageInfo.model_validate(message).model_dump(), "留言更新成功")


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除留言及其回复（作者或管理员）"""
    service = MessageService(db)
    message = await service.get_owned_message(message_id, user, "删除")
    await service.delete_message(message)
    return success(message="留言删除成功")


@router.put("/{message_id}/status")
async def update_message_status(
    message_id: int,
    data: MessageStatusUpdate,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """审核留言（管理员）"""
    service = MessageService(db)
    message = await service.require_message(message_id)
    message = await service.set_status(message, data.status)
    return success(MessageAdminInfo.model_validate(message).model_dump(), f"留言{STATUS_TEXT[data.status]}")


@router.post("/{message_id}/like")
async def like_message(message_id: int, db: AsyncSession = Depends(get_db)):
    """点赞留言"""
    service = MessageService(db)
    message = await service.require_approved_message(message_id)
    likes = await service.like(message)
    return success({"likes": likes}, "点赞成功")
