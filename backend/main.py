"""
个人博客 - 主入口
基于 FastAPI 的博客后端：文章、动态、项目、留言、媒体
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.config import get_settings
from core.database import init_db, close_db
from core.bootstrap import init_admin_user
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware, RequestContextMiddleware
from core.errors import ErrorCode, ERROR_MESSAGES, envelope, register_exception_handlers

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    logger.info(f"🚀 正在启动 {settings.app_name} v{settings.app_version}...")

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    await init_db()

    try:
        admin_result = await init_admin_user()
        if admin_result.get("created"):
            logger.warning(f"⚠️ 已创建默认管理员: {admin_result['username']}，请尽快登录并修改密码！")
    except Exception as e:
        logger.error(f"❌ 初始化管理员失败: {e}")

    logger.info(f"🎉 {settings.app_name} 启动完成! 访问: {settings.server_url}")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("🛑 系统关闭中...")
    await close_db()
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="个人博客后端 API",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# ==================== 中间件配置（后添加的先执行） ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制为具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    RequestLoggingMiddleware,
    skip_paths=["/health", "/api/docs", "/api/redoc", "/api/openapi.json", "/uploads/"],
    slow_request_threshold=1.0  # 超过1秒的请求记录为慢请求
)

app.add_middleware(RequestContextMiddleware)


# ==================== 异常处理器 ====================
register_exception_handlers(app)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {request.method} {request.url.path} | {exc}", exc_info=True)
    data = {"detail": str(exc)} if settings.debug else None
    return JSONResponse(
        status_code=500,
        content=envelope(500, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR], data)
    )


# ==================== 注册路由 ====================
from routers import auth, user, health
from modules.blog.blog_router import router as blog_router
from modules.moments.moments_router import router as moments_router
from modules.projects.projects_router import router as projects_router
from modules.guestbook.guestbook_router import router as guestbook_router
from modules.media.media_router import router as media_router

# 系统路由
app.include_router(auth.router)
app.include_router(user.router)
app.include_router(health.router)

# 业务模块
app.include_router(blog_router, prefix="/api/v1", tags=["博客"])
app.include_router(moments_router, prefix="/api/v1/moments", tags=["动态"])
app.include_router(projects_router, prefix="/api/v1/projects", tags=["项目"])
app.include_router(guestbook_router, prefix="/api/v1/messages", tags=["留言"])
app.include_router(media_router, prefix="/api/v1/media", tags=["媒体"])


# ==================== 上传文件访问 ====================
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
