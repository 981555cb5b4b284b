"""
食堂订餐服务 - 主应用入口

主要功能模块：
- 菜单浏览与库存展示
- 学生下单（并发安全的库存预占事务）
- 员工看板：实时订单、当日统计、手动下架、日终重置
- 变更事件流与操作日志

技术栈：FastAPI + DuckDB + PyJWT
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager

from .core.exceptions import BaseApplicationError
from .core.error_handler import (
    application_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from .core.logger import init_log
from .config.settings import settings
from .services import ServiceContainer
from .api import api_router

logger = init_log(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    services: ServiceContainer = app.state.services
    # 启动时初始化数据库
    try:
        services.db.init_database()
        if settings.seed_menu_on_startup:
            services.menu.seed_default_menu()
        logger.info("Database initialized successfully")
    except BaseApplicationError as e:
        # 不要让应用启动失败，允许在运行时重试
        logger.error("Database initialization failed: %s", e.message)

    yield


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """创建FastAPI应用"""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="食堂订餐系统API",
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.services = services or ServiceContainer()

    # 添加中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # 在生产环境中应该限制具体域名
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册异常处理器
    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # 注册路由
    app.include_router(api_router, prefix=settings.api_prefix)

    # 健康检查
    @app.get("/health")
    def health_check():
        try:
            app.state.services.db.execute_one("SELECT 1")
            return {
                "status": "healthy",
                "version": settings.api_version,
                "database": "connected"
            }
        except BaseApplicationError as e:
            return {
                "status": "unhealthy",
                "version": settings.api_version,
                "database": f"error: {e.message}"
            }

    @app.get("/")
    def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "食堂订餐系统API"
        }

    return app

# 应用实例
app = create_app()
