"""
应用配置
从环境变量 / .env 读取配置
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "HotelTrack"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./hoteltrack.db"

    # 会话 (JWT) 配置
    SECRET_KEY: str = "hoteltrack-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE: str = "ht_session"
    SESSION_EXPIRE_DAYS: int = 7
    COOKIE_SECURE: bool = False

    # 本地时区 (Asia/Manila, 无夏令时)
    LOCAL_UTC_OFFSET_HOURS: int = 8

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# 全局设置实例
settings = Settings()
