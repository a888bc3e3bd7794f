"""gateway 测试配置 -- FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fieldops.core.store import StoreGroup


@pytest_asyncio.fixture
async def upload_dir(tmp_path: Path) -> Path:
    """上传临时目录"""
    path = tmp_path / "uploads"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, upload_dir: Path, tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化，绕过 lifespan）"""
    os.environ["FIELDOPS_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["FIELDOPS_UPLOAD_DIR"] = str(upload_dir)
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from fieldops.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.upload_dir = upload_dir

    yield application

    for key in ["FIELDOPS_DB_PATH", "FIELDOPS_UPLOAD_DIR", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Actor-Id": "admin-1"},
    ) as ac:
        yield ac
