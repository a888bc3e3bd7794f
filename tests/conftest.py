"""全局 pytest 配置 -- 临时 SQLite 数据库 + StoreGroup fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest_asyncio
from fieldops.core.models import User, UserRole
from fieldops.core.store import StoreGroup, create_store_group
from ulid import ULID


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from fieldops.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "raw.db"))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def make_user(store_group: StoreGroup):
    """直接写库注册用户的工厂"""

    async def _make(
        name: str = "Ravi",
        role: UserRole = UserRole.EMPLOYEE,
        active: bool = True,
    ) -> User:
        user = User(
            user_id=str(ULID()),
            name=name,
            email=f"{name.lower()}-{ULID()}@example.com",
            role=role,
            active=active,
            created_at=datetime.now(UTC),
        )
        await store_group.user_store.create_user(user)
        await store_group.conn.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def employee(make_user) -> User:
    """一名可分配的外勤员工"""
    return await make_user("Ravi")


@pytest_asyncio.fixture
async def other_employee(make_user) -> User:
    """另一名可分配的外勤员工"""
    return await make_user("Meena")
