"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、上传目录、磁盘空间。
"""

import shutil
from pathlib import Path

import aiosqlite
import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. upload_dir: 上传临时目录可访问性
    3. disk_space_mb: 磁盘剩余空间
    """
    checks = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except (aiosqlite.Error, ValueError, AttributeError) as e:
        log.warning("readiness_sqlite_failed", error=str(e))
        checks["sqlite"] = f"error: {e}"
        all_ok = False

    # 2. 上传目录检查
    upload_dir = getattr(request.app.state, "upload_dir", None)
    if upload_dir is not None and Path(upload_dir).is_dir():
        checks["upload_dir"] = "ok"
    else:
        checks["upload_dir"] = "error: directory does not exist"
        all_ok = False

    # 3. 磁盘空间检查
    try:
        disk_usage = shutil.disk_usage(upload_dir if checks["upload_dir"] == "ok" else "/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
