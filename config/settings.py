"""应用设置模块

基于 pydantic-settings 从环境变量和 .env 文件加载配置
"""
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # 应用配置
    APP_NAME: str = "TaskHub API"
    APP_DESCRIPTION: str = "Team / project / task management REST API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./taskhub.db"
    DATABASE_ECHO: bool = False

    # JWT配置
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Redis配置
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # 缓存配置，后端可选 memory / redis
    CACHE_BACKEND: str = "memory"
    PROJECT_CACHE_TTL: int = 10 * 60
    TEAM_CACHE_TTL: int = 5 * 60

    # 队列配置，后端可选 memory / redis
    QUEUE_BACKEND: str = "memory"
    QUEUE_NAME: str = "taskhub:jobs"
    QUEUE_WORKER_ENABLED: bool = True
    QUEUE_POLL_INTERVAL: float = 1.0

    # 文件存储配置，磁盘可选 local / minio
    STORAGE_DISK: str = "local"
    UPLOAD_DIR: str = "./storage"
    MAX_UPLOAD_SIZE_KB: int = 10240
    ALLOWED_UPLOAD_EXTENSIONS: str = "jpeg,jpg,png,gif,pdf,doc,docx,xlsx,pptx,txt,zip,rar"

    # MinIO配置
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_BUCKET: str = "attachments"
    MINIO_SECURE: bool = False

    # 邮件配置，驱动可选 log / smtp
    MAIL_DRIVER: str = "log"
    MAIL_HOST: str = "localhost"
    MAIL_PORT: int = 587
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: str = "no-reply@taskhub.local"
    MAIL_USE_TLS: bool = True

    # 逾期任务定时扫描
    OVERDUE_SWEEP_ENABLED: bool = False
    OVERDUE_SWEEP_INTERVAL_HOURS: int = 24

    # 接口限流（每分钟次数）
    LOGIN_RATE_LIMIT: int = 5
    USER_CREATION_RATE_LIMIT: int = 10
    UPLOAD_RATE_LIMIT: int = 20

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "app.log"
    LOG_MAX_SIZE: int = 10 * 1024 * 1024  # 10 MB
    LOG_BACKUP_COUNT: int = 5

    # CORS配置
    cors_origins: list[str] = ["*"]

    @property
    def allowed_extensions(self) -> set:
        return {ext.strip().lower() for ext in self.ALLOWED_UPLOAD_EXTENSIONS.split(",") if ext.strip()}

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# 创建全局设置实例
settings = Settings()
