"""
工具函数目录
按功能分类组织
"""

from .request import get_client_ip, get_user_agent

__all__ = [
    # 请求处理
    "get_client_ip",
    "get_user_agent"
]
