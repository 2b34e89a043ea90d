"""
标准错误码体系
提供统一的错误码定义和异常处理

响应信封统一为 {"code": <HTTP 状态码>, "message": ..., "data": ...}，
ErrorCode 仅用于在服务端区分错误类别并映射默认消息与状态码。
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    - 4xxx: 模块级错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    DATABASE_ERROR = 1001           # 数据库错误
    FILE_SYSTEM_ERROR = 1007        # 文件系统错误

    # ==================== 认证/授权错误 (2xxx) ====================
    UNAUTHORIZED = 2001             # 未认证（未登录）
    TOKEN_EXPIRED = 2002            # 令牌过期
    TOKEN_INVALID = 2003            # 令牌无效
    PERMISSION_DENIED = 2004        # 权限不足
    LOGIN_FAILED = 2007             # 登录失败
    PASSWORD_INCORRECT = 2008       # 密码错误
    ACCOUNT_NOT_FOUND = 2009        # 账户不存在
    ACCOUNT_EXISTS = 2010           # 账户已存在

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    RESOURCE_EXISTS = 3003          # 资源已存在
    OPERATION_FAILED = 3005         # 操作失败
    INVALID_OPERATION = 3006        # 无效操作
    FILE_TOO_LARGE = 3009           # 文件过大
    FILE_TYPE_NOT_ALLOWED = 3010    # 文件类型不允许

    # ==================== 模块级错误 (4xxx) ====================
    # 4000-4099: 博客模块
    BLOG_CATEGORY_HAS_ARTICLES = 4004
    BLOG_MERGE_INTO_SELF = 4005
    BLOG_INVALID_PARENT = 4006

    # 4100-4199: 留言模块
    GUESTBOOK_INVALID_REPLY = 4101

    # 4300-4399: 媒体模块
    MEDIA_IN_USE = 4301


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "操作成功",

    # 系统级
    ErrorCode.INTERNAL_ERROR: "服务器内部错误，请稍后重试",
    ErrorCode.DATABASE_ERROR: "数据库操作失败",
    ErrorCode.FILE_SYSTEM_ERROR: "文件系统错误",

    # 认证/授权
    ErrorCode.UNAUTHORIZED: "未提供认证令牌",
    ErrorCode.TOKEN_EXPIRED: "认证令牌已过期",
    ErrorCode.TOKEN_INVALID: "无效的认证令牌",
    ErrorCode.PERMISSION_DENIED: "没有权限执行此操作",
    ErrorCode.LOGIN_FAILED: "邮箱或密码错误",
    ErrorCode.PASSWORD_INCORRECT: "原密码错误",
    ErrorCode.ACCOUNT_NOT_FOUND: "用户不存在",
    ErrorCode.ACCOUNT_EXISTS: "账户已存在",

    # 业务通用
    ErrorCode.VALIDATION_ERROR: "参数验证失败",
    ErrorCode.RESOURCE_NOT_FOUND: "请求的资源不存在",
    ErrorCode.RESOURCE_EXISTS: "资源已存在",
    ErrorCode.OPERATION_FAILED: "操作失败",
    ErrorCode.INVALID_OPERATION: "无效的操作",
    ErrorCode.FILE_TOO_LARGE: "文件大小超出限制",
    ErrorCode.FILE_TYPE_NOT_ALLOWED: "不支持的文件类型",

    # 模块级
    ErrorCode.BLOG_CATEGORY_HAS_ARTICLES: "该分类下还有文章，无法删除",
    ErrorCode.BLOG_MERGE_INTO_SELF: "目标不能在源列表中",
    ErrorCode.BLOG_INVALID_PARENT: "回复目标无效",
    ErrorCode.GUESTBOOK_INVALID_REPLY: "回复的留言不存在",
    ErrorCode.MEDIA_IN_USE: "文件正在被引用，无法删除",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.FILE_SYSTEM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 认证/授权 -> 401/403
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOGIN_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PASSWORD_INCORRECT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_400_BAD_REQUEST,

    # 业务通用 -> 400/404
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESOURCE_EXISTS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OPERATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FILE_TOO_LARGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FILE_TYPE_NOT_ALLOWED: status.HTTP_400_BAD_REQUEST,

    # 模块级 -> 400
    ErrorCode.BLOG_CATEGORY_HAS_ARTICLES: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BLOG_MERGE_INTO_SELF: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BLOG_INVALID_PARENT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.GUESTBOOK_INVALID_REPLY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MEDIA_IN_USE: status.HTTP_400_BAD_REQUEST,
}


def envelope(http_status: int, message: str, data: Any = None) -> dict:
    """构建统一响应信封"""
    return {
        "code": http_status,
        "message": message,
        "data": data
    }


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "文章不存在")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"errors": [...]})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return envelope(self.http_status, self.message, self.data)


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "参数验证失败", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str = "资源", resource_id: Any = None):
        message = f"{resource}不存在"
        if resource_id:
            message = f"{resource} (ID: {resource_id}) 不存在"
        super().__init__(
            code=ErrorCode.RESOURCE_NOT_FOUND,
            message=message
        )


class PermissionException(AppException):
    """权限异常"""

    def __init__(self, message: str = "没有权限执行此操作"):
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message=message
        )


class BusinessException(AppException):
    """业务异常"""

    def __init__(
        self,
        code: int = ErrorCode.OPERATION_FAILED,
        message: str = "操作失败",
        data: Any = None
    ):
        super().__init__(code=code, message=message, data=data)


# ==================== 异常处理器 ====================

def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException
    from sqlalchemy.exc import SQLAlchemyError
    from .config import get_settings

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        if exc.http_status >= 500:
            logger.error(f"服务端异常: {request.method} {request.url.path} | {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=envelope(status.HTTP_400_BAD_REQUEST, "参数验证失败", {"errors": errors})
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        default_messages = {
            401: ERROR_MESSAGES[ErrorCode.UNAUTHORIZED],
            403: ERROR_MESSAGES[ErrorCode.PERMISSION_DENIED],
            404: ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND],
        }
        message = str(exc.detail) if exc.detail else default_messages.get(exc.status_code, "请求失败")

        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(exc.status_code, message)
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request, exc: SQLAlchemyError):
        logger.error(f"数据库异常: {request.method} {request.url.path} | {exc}", exc_info=True)
        message = ERROR_MESSAGES[ErrorCode.DATABASE_ERROR]
        data = {"detail": str(exc)} if get_settings().debug else None
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, message, data)
        )
