"""
文件存储工具
处理媒体文件的校验、存储和删除
"""

import io
import time
import uuid
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import filetype
from PIL import Image, UnidentifiedImageError

from core.config import get_settings
from core.errors import AppException, ErrorCode

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# 扩展名变体
EXTENSION_ALIASES = {".jpeg": ".jpg"}


class StorageManager:
    """本地文件存储管理器"""

    @property
    def upload_dir(self) -> Path:
        # 每次读取配置，便于运行时切换上传目录
        return Path(get_settings().upload_dir).resolve()

    @property
    def max_size(self) -> int:
        return get_settings().max_upload_size

    def validate_image(self, filename: str, content_type: Optional[str], content: bytes) -> str:
        """
        校验上传的图片

        依次检查 MIME 类型、扩展名、文件内容（魔数）和大小。

        Returns:
            小写扩展名（含点）

        Raises:
            AppException: 类型不允许或文件过大
        """
        if content_type not in ALLOWED_MIME_TYPES:
            raise AppException(
                ErrorCode.FILE_TYPE_NOT_ALLOWED,
                f"不支持的文件类型: {content_type}。仅支持 {', '.join(sorted(ALLOWED_MIME_TYPES))}"
            )

        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise AppException(
                ErrorCode.FILE_TYPE_NOT_ALLOWED,
                f"不支持的文件扩展名: {ext or '无'}。仅支持 {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )

        kind = filetype.guess(content)
        if kind is None or kind.mime not in ALLOWED_MIME_TYPES:
            raise AppException(ErrorCode.FILE_TYPE_NOT_ALLOWED, "文件内容不是有效的图片")

        detected = EXTENSION_ALIASES.get(f".{kind.extension}", f".{kind.extension}")
        if EXTENSION_ALIASES.get(ext, ext) != detected:
            raise AppException(
                ErrorCode.FILE_TYPE_NOT_ALLOWED,
                f"文件类型不匹配：扩展名为 {ext}，但实际文件类型为 {kind.mime}"
            )

        if len(content) > self.max_size:
            raise AppException(
                ErrorCode.FILE_TOO_LARGE,
                f"文件大小超过限制（最大 {self.max_size / 1024 / 1024:.1f}MB）"
            )

        return ext

    def generate_path(self, ext: str, category: str = "media") -> Tuple[str, Path]:
        """
        生成存储路径：{category}/YYYY/MM/{时间戳}-{uuid}{ext}

        Returns:
            (相对路径, 完整路径)
        """
        date_dir = datetime.now().strftime("%Y/%m")
        stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4()}{ext}"
        relative_path = f"{category}/{date_dir}/{stored_name}"
        return relative_path, self.upload_dir / relative_path

    async def save(self, full_path: Path, content: bytes):
        full_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(full_path, "wb") as f:
            await f.write(content)

    @staticmethod
    def image_size(content: bytes) -> Tuple[Optional[int], Optional[int]]:
        """读取图片宽高，无法识别时返回 (None, None)"""
        try:
            with Image.open(io.BytesIO(content)) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"读取图片尺寸失败: {e}")
            return None, None

    def file_url(self, relative_path: str) -> str:
        return f"{get_settings().server_url.rstrip('/')}/uploads/{relative_path}"

    def _is_safe_path(self, path: Path) -> bool:
        """检查路径是否位于上传目录内（防止路径遍历）"""
        return path.resolve().is_relative_to(self.upload_dir)

    def delete_file(self, relative_path: str) -> bool:
        """
        删除物理文件

        Returns:
            是否删除成功；失败只记录日志，不抛出异常
        """
        if '..' in relative_path or relative_path.startswith('/'):
            logger.warning(f"检测到可疑路径: {relative_path}")
            return False

        full_path = self.upload_dir / relative_path
        if not self._is_safe_path(full_path):
            logger.warning(f"路径遍历尝试被阻止: {relative_path}")
            return False

        try:
            if full_path.exists():
                full_path.unlink()
                return True
            logger.warning(f"待删除文件不存在: {relative_path}")
            return False
        except OSError as e:
            logger.error(f"删除文件失败 {relative_path}: {e}")
            return False


# 全局存储管理器实例
_storage_manager: Optional[StorageManager] = None


def get_storage_manager() -> StorageManager:
    """获取存储管理器实例"""
    global _storage_manager
    if _storage_manager is None:
        _storage_manager = StorageManager()
    return _storage_manager
