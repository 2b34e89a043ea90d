"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "Personal Blog API"
    app_version: str = "1.0.0"
    debug: bool = False

    # 数据库配置（database_url 优先，例如测试时使用 sqlite+aiosqlite）
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "personal_blog"
    db_time_zone: str = "+08:00"
    db_pool_size: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+aiomysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite")

    # JWT令牌配置
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60  # 7天

    # 文件存储
    upload_dir: str = "uploads"
    max_upload_size: int = 5 * 1024 * 1024  # 5MB
    server_url: str = "http://localhost:8000"  # 拼接文件访问地址

    # 默认管理员账户配置（首次启动时创建）
    admin_username: str = "admin"
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"  # 首次启动后请立即修改


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        # 安全检查: 如果是生产环境且使用默认密钥，发出警告
        if not _settings_instance.debug and _settings_instance.jwt_secret == DEFAULT_JWT_SECRET:
            logging.getLogger("core.config").warning(
                "🚨 [安全警告] 您正在生产环境模式下使用默认的 JWT_SECRET！"
                "请立即在 .env 文件中配置 JWT_SECRET。"
            )
    return _settings_instance


def reload_settings() -> Settings:
    """重新加载配置"""
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
