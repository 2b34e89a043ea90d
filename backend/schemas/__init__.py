"""
数据验证模式目录
"""

from .auth import UserCreate, UserLogin, UserUpdate, UserInfo, AuthorBrief, PasswordChange
from .batch import BatchIds, BatchMerge
from .response import ApiResponse, success, created, paginate

__all__ = [
    # 认证
    "UserCreate", "UserLogin", "UserUpdate", "UserInfo", "AuthorBrief", "PasswordChange",
    # 批量操作
    "BatchIds", "BatchMerge",
    # 响应
    "ApiResponse", "success", "created", "paginate"
]
