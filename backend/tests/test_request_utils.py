"""
HTTP 请求工具单元测试
"""

from unittest.mock import MagicMock

from utils.request import get_client_ip, get_user_agent


def _request(headers=None, host="10.0.0.9"):
    request = MagicMock()
    request.headers = headers or {}
    request.client = MagicMock(host=host) if host else None
    return request


class TestClientIp:
    """客户端 IP 提取测试"""

    def test_forwarded_for_first_hop(self):
        request = _request({"X-Forwarded-For": "1.2.3.4, 5.6.7.8"})
        assert get_client_ip(request) == "1.2.3.4"

    def test_real_ip(self):
        assert get_client_ip(_request({"X-Real-IP": "9.9.9.9"})) == "9.9.9.9"

    def test_client_host(self):
        assert get_client_ip(_request()) == "10.0.0.9"

    def test_unknown(self):
        assert get_client_ip(_request(host=None)) == "unknown"


class TestUserAgent:

    def test_user_agent(self):
        assert get_user_agent(_request({"User-Agent": "pytest"})) == "pytest"
        assert get_user_agent(_request()) == ""
