"""
健康检查路由
提供存活检查和 API 索引
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from core.config import get_settings
from core.database import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["健康检查"])

# 系统启动时间
_start_time = time.time()

API_RESOURCES = {
    "auth": "/api/v1/auth",
    "users": "/api/v1/users",
    "articles": "/api/v1/articles",
    "categories": "/api/v1/categories",
    "tags": "/api/v1/tags",
    "comments": "/api/v1/comments",
    "moments": "/api/v1/moments",
    "projects": "/api/v1/projects",
    "messages": "/api/v1/messages",
    "media": "/api/v1/media",
}


class ComponentHealth(BaseModel):
    """组件健康状态"""
    status: str
    message: Optional[str] = None
    latency_ms: Optional[float] = None


async def check_database() -> ComponentHealth:
    """检查数据库连接"""
    start = time.time()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"数据库健康检查失败: {e}")
        return ComponentHealth(status="unhealthy", message="数据库连接失败")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", message="数据库连接正常", latency_ms=round(latency, 2))


@router.get("/health")
async def health():
    """存活检查"""
    settings = get_settings()
    database = await check_database()
    return {
        "code": 200,
        "message": "success",
        "data": {
            "status": "healthy" if database.status == "healthy" else "degraded",
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(time.time() - _start_time, 2),
            "components": {"database": database.model_dump()}
        }
    }


@router.get("/api/v1")
async def api_index():
    """API 索引"""
    settings = get_settings()
    return {
        "code": 200,
        "message": "success",
        "data": {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/api/docs",
            "endpoints": API_RESOURCES
        }
    }
