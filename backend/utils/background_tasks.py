"""
后台任务辅助工具
用于在响应返回后执行的轻量任务（如浏览量累加）
"""

import logging
from typing import Callable, Any, Coroutine
from sqlalchemy.ext.asyncio import AsyncSession

from core import database

logger = logging.getLogger(__name__)


class BackgroundTaskHelper:
    """
    后台任务辅助类
    在独立的数据库会话中运行任务，任务失败只记录日志，不影响已返回的响应
    """

    @staticmethod
    async def run_with_db(task_func: Callable[..., Coroutine[Any, Any, None]], *args, **kwargs):
        """
        在独立的 DB 会话中运行异步任务

        Args:
            task_func: 异步任务函数，第一个参数必须是 db: AsyncSession
            *args: 传递给任务的位置参数
            **kwargs: 传递给任务的关键字参数
        """
        async with database.get_db_session() as db:
            try:
                await task_func(db, *args, **kwargs)
            except Exception as e:
                await db.rollback()
                logger.error(f"后台任务执行失败: {task_func.__name__} | {e}", exc_info=True)
