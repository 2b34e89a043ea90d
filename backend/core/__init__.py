"""
个人博客后端核心模块

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, get_db, async_session
- 安全认证: get_current_user, get_optional_user, require_admin
- 分页工具: paginate, PageResult, PaginationParams, Paginator
- 批量操作: run_batch, BatchResult
- 错误处理: ErrorCode, AppException, register_exception_handlers
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, get_db, get_db_session, async_session, init_db, close_db

# 安全认证
from .security import (
    get_current_user,
    get_optional_user,
    require_roles,
    require_admin,
    can_act,
    create_token,
    decode_token,
    hash_password,
    verify_password,
    TokenData,
    CurrentUser
)

# 分页工具
from .pagination import (
    paginate,
    PageResult,
    PaginationParams,
    Paginator,
    get_pagination_params
)

# 批量操作
from .batch import run_batch, BatchResult, ownership_check

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    BusinessException,
    register_exception_handlers
)

# 中间件
from .middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestContextMiddleware
)


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 数据库
    "Base",
    "get_db",
    "get_db_session",
    "async_session",
    "init_db",
    "close_db",

    # 安全
    "get_current_user",
    "get_optional_user",
    "require_roles",
    "require_admin",
    "can_act",
    "create_token",
    "decode_token",
    "hash_password",
    "verify_password",
    "TokenData",
    "CurrentUser",

    # 分页
    "paginate",
    "PageResult",
    "PaginationParams",
    "Paginator",
    "get_pagination_params",

    # 批量
    "run_batch",
    "BatchResult",
    "ownership_check",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "AuthException",
    "NotFoundException",
    "PermissionException",
    "BusinessException",
    "register_exception_handlers",

    # 中间件
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestContextMiddleware",
]
