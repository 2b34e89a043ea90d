"""
pytest 测试配置入口
在任何业务模块加载之前设置测试环境变量，
并从 tests/test_conftest.py 导入所有 fixtures。
"""

import os
import tempfile

# 在导入任何其他模块之前设置测试环境变量
# 使用临时文件而不是 :memory:，保证多个连接看到同一个库
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"personal_blog_test_{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-pytest-only")
os.environ.setdefault("DEBUG", "true")

# 从 test_conftest.py 导入所有 fixtures
from tests.test_conftest import *
