"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "IM Kernel"
    app_version: str = "1.0.0"
    debug: bool = False

    # 数据库配置
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "im_kernel"

    # 完整连接串（设置后优先于 db_* 拼接，测试环境使用 sqlite+aiosqlite）
    database_url: Optional[str] = None

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

    # 模块配置
    modules_dir: str = "modules"

    # 业务路由前缀（模块路由与数据源回调均挂载在此前缀下）
    api_prefix: str = "/v1"

    # 用户头像路径模板
    avatar_path_template: str = "users/{uid}/avatar"

    # 随机昵称词库（相对 backend 目录）
    nickname_file: str = "modules/user/txt/names.txt"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reload_settings():
    """重新加载配置"""
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
