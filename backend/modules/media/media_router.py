"""
媒体库API路由
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import ValidationException
from core.pagination import PaginationParams, get_pagination_params
from core.security import CurrentUser, get_current_user
from schemas import BatchIds, success, created, paginate

from .media_schemas import MediaRename, MediaInfo
from .media_services import MediaService

router = APIRouter()


def _dump(media) -> dict:
    return MediaInfo.model_validate(media).model_dump()


@router.post("/upload", status_code=201)
async def upload_media(
    file: UploadFile = File(..., description="图片文件"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """上传图片"""
    if not file.filename:
        raise ValidationException("请选择要上传的文件")
    content = await file.read()
    media = await MediaService(db).upload(content, file.filename, file.content_type, user)
    return created(_dump(media), "文件上传成功")


@router.get("")
async def list_media(
    mime_type: Optional[str] = None,
    keyword: Optional[str] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """媒体列表"""
    result = await MediaService(db).list_media(
        user, mime_type=mime_type, keyword=keyword,
        page=pagination.page, limit=pagination.limit
    )
    return paginate(result, "media")


@router.post("/batch-delete")
async def batch_delete_media(
    data: BatchIds,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量删除文件"""
    result = await MediaService(db).batch_delete(data.ids, user)
    return success(result.to_dict(), f"成功删除 {result.affected_count} 个文件")


@router.get("/{media_id}")
async def get_media(
    media_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """文件详情（上传者或管理员）"""
    media = await MediaService(db).get_owned_media(media_id, user)
    return success(_dump(media))


@router.put("/{media_id}")
async def rename_media(
    media_id: int,
    data: MediaRename,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """修改文件名"""
    service = MediaService(db)
    media = await service.get_owned_media(media_id, user, "修改")
    media = await service.rename(media, data.filename)
    return success(_dump(media), "文件信息更新成功")


@router.delete("/{media_id}")
async def delete_media(
    media_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除文件（被引用时禁止删除）"""
    service = MediaService(db)
    media = await service.get_owned_media(media_id, user, "删除")
    await service.delete_media(media)
    return success(message="文件删除成功")
