"""
统一响应格式
API返回的标准JSON结构：{"code": HTTP状态码, "message": ..., "data": ...}
"""

from typing import Any, Generic, TypeVar, Optional
from pydantic import BaseModel

from core.pagination import PageResult


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """统一API响应"""
    code: int = 200
    message: str = "success"
    data: Optional[T] = None


def success(data: Any = None, message: str = "success", code: int = 200) -> dict:
    """成功响应"""
    return {
        "code": code,
        "message": message,
        "data": data
    }


def created(data: Any = None, message: str = "创建成功") -> dict:
    """创建成功（配合路由 status_code=201 使用）"""
    return success(data, message, code=201)


def paginate(result: PageResult, resource_name: str = "items", message: str = "success") -> dict:
    """分页响应"""
    return success(result.to_dict(resource_name), message)
