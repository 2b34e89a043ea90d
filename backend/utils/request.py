"""
HTTP请求工具
"""

from fastapi import Request


def get_client_ip(request: Request) -> str:
    """
    获取客户端真实IP

    支持代理服务器（Nginx等）转发的请求
    """
    # 取 X-Forwarded-For 的第一个IP（最原始的客户端IP）
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> str:
    """获取用户代理"""
    return request.headers.get("User-Agent", "")
