"""
媒体库业务逻辑
"""

import logging
from typing import Optional, Sequence, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_

from core.batch import BatchResult, combine_checks, ownership_check, run_batch
from core.errors import BusinessException, ErrorCode, NotFoundException, PermissionException
from core.pagination import PageResult, paginate
from core.security import CurrentUser, can_act
from utils.storage import StorageManager, get_storage_manager

from .media_models import Media
from .media_schemas import MediaInfo

logger = logging.getLogger(__name__)


def _in_use_check(media: Media) -> Optional[str]:
    if media.usage_count > 0:
        return f'文件 "{media.filename}": 正在被引用，无法删除'
    return None


class MediaService:
    """媒体服务"""

    def __init__(self, db: AsyncSession, storage: Optional[StorageManager] = None):
        self.db = db
        self.storage = storage or get_storage_manager()

    async def get_media(self, media_id: int) -> Optional[Media]:
        result = await self.db.execute(
            select(Media)
            .where(Media.id == media_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_owned_media(self, media_id: int, user: CurrentUser, action: str = "查看") -> Media:
        media = await self.get_media(media_id)
        if not media:
            raise NotFoundException("媒体文件")
        if not can_act(user, media.uploader_id):
            raise PermissionException(f"无权{action}此文件")
        return media

    async def list_media(
        self,
        user: CurrentUser,
        mime_type: Optional[str] = None,
        keyword: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """媒体列表：非管理员只能看到自己上传的文件"""
        conditions = []
        if not user.is_admin:
            conditions.append(Media.uploader_id == user.id)
        if mime_type:
            conditions.append(Media.mime_type == mime_type)
        if keyword:
            conditions.append(Media.filename.contains(keyword))

        stmt = select(Media)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(Media.created_at.desc(), Media.id.desc()).execution_options(populate_existing=True)
        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda m: MediaInfo.model_validate(m).model_dump()
        )

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        user: CurrentUser
    ) -> Media:
        """
        保存上传的图片并创建记录

        记录写入失败时删除已保存的文件。
        """
        ext = self.storage.validate_image(filename, content_type, content)
        relative_path, full_path = self.storage.generate_path(ext)
        await self.storage.save(full_path, content)
        width, height = self.storage.image_size(content)

        media = Media(
            filename=filename,
            stored_name=full_path.name,
            file_path=relative_path,
            file_url=self.storage.file_url(relative_path),
            file_size=len(content),
            mime_type=content_type,
            width=width,
            height=height,
            uploader_id=user.id,
            usage_count=0,
            storage_type="local"
        )
        self.db.add(media)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            self.storage.delete_file(relative_path)
            raise

        logger.info(f"上传文件: {filename} -> {relative_path} ({len(content)} 字节, 用户: {user.id})")
        return await self.get_media(media.id)

    async def rename(self, media: Media, filename: str) -> Media:
        media.filename = filename
        await self.db.commit()
        return await self.get_media(media.id)

    async def delete_media(self, media: Media):
        """删除记录后再删除物理文件"""
        if media.usage_count > 0:
            raise BusinessException(
                ErrorCode.MEDIA_IN_USE,
                f"文件正在被 {media.usage_count} 处引用，无法删除"
            )
        file_path = media.file_path
        await self.db.delete(media)
        await self.db.commit()
        self.storage.delete_file(file_path)
        logger.info(f"删除文件: {media.filename} (ID: {media.id})")

    async def batch_delete(self, ids: Sequence[int], user: CurrentUser) -> BatchResult:
        """批量删除：逐项校验归属和引用，提交后删除物理文件"""
        removed_paths: List[str] = []

        async def action(items: List[Media]) -> int:
            await self.db.execute(delete(Media).where(Media.id.in_([m.id for m in items])))
            removed_paths.extend(m.file_path for m in items)
            return len(items)

        check = combine_checks(
            ownership_check(user, "uploader_id", "无权删除", describe=lambda m: f'文件 "{m.filename}"'),
            _in_use_check
        )
        result = await run_batch(
            self.db, Media, ids, action,
            check=check, resource="媒体文件", label="批量删除文件"
        )

        for path in removed_paths:
            self.storage.delete_file(path)
        return result
