import logging
import os
from contextlib import asynccontextmanager

import uvicorn

# 导入数据库相关
from models.database import engine, Base, SessionLocal

# 导入配置模块
from config.app_config import create_app, configure_routes
from config.exception_handlers import configure_exception_handlers
from config.middleware import configure_middleware
from config.logging_config import setup_logging
from config.settings import settings
from services.notification_worker import JobWorker
from services.overdue_sweep import OverdueSweepScheduler
from utils.cache_manager import get_cache
from utils.job_queue import get_job_queue
from utils.mailer import create_mailer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """启动：建表、准备上传目录、启动后台线程；关闭：停止后台线程"""
    setup_logging()
    Base.metadata.create_all(bind=engine)
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    worker = None
    scheduler = None
    if settings.QUEUE_WORKER_ENABLED:
        worker = JobWorker(get_job_queue(), SessionLocal, create_mailer(), settings.QUEUE_POLL_INTERVAL)
        worker.start()
    if settings.OVERDUE_SWEEP_ENABLED:
        scheduler = OverdueSweepScheduler(SessionLocal, get_cache(), settings.OVERDUE_SWEEP_INTERVAL_HOURS)
        scheduler.start()

    logger.info(f"{settings.APP_NAME} {settings.VERSION} 启动完成")
    yield

    if scheduler:
        scheduler.stop()
    if worker:
        worker.stop()
    logger.info(f"{settings.APP_NAME} 已关闭")


# 创建FastAPI应用
app = create_app(lifespan=lifespan)

# 配置中间件
configure_middleware(app)

# 配置异常处理器
configure_exception_handlers(app)

# 配置路由
configure_routes(app)

if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    print(f"🚀 启动 {settings.APP_NAME} ...")
    print(f"📍 地址: http://{host}:{port}")
    print(f"🔧 调试模式: {settings.DEBUG}")
    print(f"📚 API文档: http://{host}:{port}/docs")

    if settings.DEBUG:
        # 开发模式使用import string以支持reload
        uvicorn.run("main:app", host=host, port=port, reload=True, log_level="debug")
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")
