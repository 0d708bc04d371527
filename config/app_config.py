"""应用配置模块

负责创建FastAPI应用实例和配置路由
"""
from fastapi import FastAPI

from config.settings import settings
from schemas.base import default_timestamp

# 导入路由
from routers import auth, teams, projects, tasks, comments, attachments, notifications


def create_app(lifespan=None) -> FastAPI:
    """创建FastAPI应用实例"""
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    return app


def configure_routes(app: FastAPI) -> None:
    """配置应用路由"""
    prefix = settings.API_PREFIX
    app.include_router(auth.router, prefix=prefix, tags=["认证"])
    app.include_router(teams.router, prefix=f"{prefix}/teams", tags=["团队管理"])
    app.include_router(projects.router, prefix=f"{prefix}/projects", tags=["项目管理"])
    app.include_router(tasks.router, prefix=f"{prefix}/tasks", tags=["任务管理"])
    app.include_router(comments.router, prefix=f"{prefix}/comments", tags=["评论管理"])
    app.include_router(attachments.router, prefix=f"{prefix}/attachments", tags=["附件管理"])
    app.include_router(notifications.router, prefix=f"{prefix}/notifications", tags=["通知管理"])

    # 根路径
    @app.get("/")
    async def root():
        return {
            "message": settings.APP_NAME,
            "version": settings.VERSION,
            "timestamp": default_timestamp()
        }

    # 健康检查
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": default_timestamp()
        }
