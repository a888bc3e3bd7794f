"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 上传目录准备 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fieldops.core.config import get_db_path, get_upload_dir
from fieldops.core.store import create_store_group

from .errors import register_exception_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import bulk_upload, health, tasks, users

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    upload_dir = get_upload_dir()
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.state.upload_dir = upload_dir

    log.info("gateway_started", db_path=db_path, upload_dir=str(upload_dir))

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="fieldops",
        version="0.1.0",
        description="外勤任务派发与跟踪 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire()

    register_exception_handlers(app)

    # 注册路由（bulk-upload 先于 /tasks/{task_id} 系列）
    app.include_router(bulk_upload.router, tags=["bulk-upload"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(users.router, tags=["users"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
