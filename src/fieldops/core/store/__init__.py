"""fieldops Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .activity_store import SqliteActivityStore
from .protocols import ActivitySink, TaskStore, UserStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    append_activity_only,
    create_task_only,
    create_task_with_activity,
    delete_task_with_activity,
    update_task_with_activity,
)
from .user_store import SqliteUserStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    write_lock 序列化同一连接上的读-改-写，避免并发请求的事务互相穿插。
    """

    def __init__(
        self,
        conn: aiosqlite.Connection,
        activity_sink: ActivitySink | None = None,
    ) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.user_store = SqliteUserStore(conn)
        self.activity_store = SqliteActivityStore(conn)
        self.activity_sink: ActivitySink = activity_sink or self.activity_store
        self.write_lock = asyncio.Lock()


async def create_store_group(
    db_path: str,
    activity_sink: ActivitySink | None = None,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        activity_sink: 审计写入方，默认写入同库 activity_log 表

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn, activity_sink=activity_sink)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteUserStore",
    "SqliteActivityStore",
    "TaskStore",
    "UserStore",
    "ActivitySink",
    "init_db",
    "create_task_with_activity",
    "update_task_with_activity",
    "delete_task_with_activity",
    "append_activity_only",
    "create_task_only",
]
