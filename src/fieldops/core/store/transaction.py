"""任务写入 + 审计记录原子事务封装

在同一 SQLite 事务内提交 Task 变更与对应的审计记录，
任一步失败则整体回滚。
"""

from datetime import datetime

import aiosqlite

from ..exceptions import ConflictError
from ..models.activity import ActivityRecord
from ..models.task import Task
from .protocols import ActivitySink, TaskStore


async def create_task_with_activity(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    sink: ActivitySink,
    task: Task,
    activity: ActivityRecord,
) -> None:
    """单事务插入 Task 与 TASK_CREATED 审计记录

    Raises:
        aiosqlite.IntegrityError: 表约束拒绝写入（已回滚）
    """
    try:
        await task_store.create_task(task)
        await sink.record(activity)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def update_task_with_activity(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    sink: ActivitySink,
    task: Task,
    expected_updated_at: datetime,
    activity: ActivityRecord,
) -> None:
    """单事务更新 Task 并写入审计记录

    Args:
        expected_updated_at: 读取时的 updated_at，用于检测并发修改

    Raises:
        ConflictError: 记录在读取后已被修改或删除
    """
    try:
        updated = await task_store.update_task(task, expected_updated_at)
        if not updated:
            raise ConflictError(
                f"Task {task.task_id} was modified by another request, please retry"
            )
        await sink.record(activity)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def delete_task_with_activity(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    sink: ActivitySink,
    task_id: str,
    activity: ActivityRecord,
) -> bool:
    """单事务删除 Task 并写入审计记录

    Returns:
        False 表示记录已不存在（未写审计）
    """
    try:
        deleted = await task_store.delete_task(task_id)
        if deleted:
            await sink.record(activity)
        await conn.commit()
        return deleted
    except Exception:
        await conn.rollback()
        raise


async def append_activity_only(
    conn: aiosqlite.Connection,
    sink: ActivitySink,
    activity: ActivityRecord,
) -> None:
    """仅写入审计记录（不涉及 Task 变更）"""
    try:
        await sink.record(activity)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def create_task_only(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task: Task,
) -> None:
    """单独插入一条 Task 并提交（批量导入逐行落盘，审计按整批记录）

    Raises:
        aiosqlite.IntegrityError: 表约束拒绝写入（已回滚）
    """
    try:
        await task_store.create_task(task)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
