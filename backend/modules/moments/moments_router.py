"""
动态API路由
"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.pagination import PaginationParams, get_pagination_params
from core.security import CurrentUser, get_current_user, get_optional_user
from schemas import BatchIds, success, created, paginate

from .moments_schemas import MomentCreate, MomentUpdate, MomentPin, MomentInfo, Visibility
from .moments_services import MomentService

router = APIRouter()


def _dump(moment) -> dict:
    return MomentInfo.model_validate(moment).model_dump()


@router.get("")
async def list_moments(
    user_id: Optional[int] = None,
    visibility: Optional[Visibility] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """动态列表"""
    result = await MomentService(db).list_moments(
        user, user_id=user_id, visibility=visibility,
        page=pagination.page, limit=pagination.limit
    )
    return paginate(result, "moments")


@router.post("/batch-delete")
async def batch_delete_moments(
    data: BatchIds,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量删除动态"""
    result = await MomentService(db).batch_delete(data.ids, user)
    return success(result.to_dict(), "批量删除完成")


@router.get("/{moment_id}")
async def get_moment(
    moment_id: int,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """动态详情"""
    moment = await MomentService(db).get_visible_moment(moment_id, user)
    return success(_dump(moment))


@router.post("", status_code=201)
async def create_moment(
    data: MomentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """发布动态"""
    moment = await MomentService(db).create_moment(data, user.id)
    return created(_dump(moment), "发布成功")


@router.put("/{moment_id}")
async def update_moment(
    moment_id: int,
    data: MomentUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新动态（作者或管理员）"""
    service = MomentService(db)
    moment = await service.get_owned_moment(moment_id, user, "编辑")
    moment = await service.update_moment(moment, data)
    return success(_dump(moment), "更新成功")


@router.put("/{moment_id}/pin")
async def pin_moment(
    moment_id: int,
    data: MomentPin,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """置顶/取消置顶（作者或管理员）"""
    service = MomentService(db)
    moment = await service.get_owned_moment(moment_id, user)
    moment = await service.set_pinned(moment, data.is_pinned)
    return success(_dump(moment), "已置顶" if data.is_pinned else "已取消置顶")


@router.delete("/{moment_id}")
async def delete_moment(
    moment_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除动态（作者或管理员）"""
    service = MomentService(db)
    moment = await service.get_owned_moment(moment_id, user, "删除")
    await service.delete_moment(moment)
    return success(message="删除成功")
