"""TaskStore SQLite 实现

只提供数据库读写，不提交事务；事务边界由调用方（transaction 模块）管理。
更新使用 updated_at 作为乐观检查：读取后被他人修改过则不写入。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import Task

_TASK_COLUMNS: tuple[str, ...] = (
    "task_id",
    "created_at",
    "updated_at",
    "title",
    "client_name",
    "postal_code",
    "map_url",
    "latitude",
    "longitude",
    "assigned_to_user_id",
    "status",
    "assigned_date",
    "assigned_at",
    "completed_at",
    "verified_at",
    "manual_date",
    "manual_time",
    "notes",
)

_DATETIME_COLUMNS = frozenset(
    {"created_at", "updated_at", "assigned_at", "completed_at", "verified_at"}
)

_SELECT_SQL = f"SELECT {', '.join(_TASK_COLUMNS)} FROM tasks"

# 搜索匹配的列
_SEARCH_COLUMNS = ("title", "postal_code", "notes")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        placeholders = ", ".join("?" for _ in _TASK_COLUMNS)
        await self._conn.execute(
            f"INSERT INTO tasks ({', '.join(_TASK_COLUMNS)}) VALUES ({placeholders})",
            self._task_to_params(task),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"{_SELECT_SQL} WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        status: TaskStatus | str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """查询任务列表，按 created_at 倒序

        Args:
            status: 按状态筛选
            assigned_to: 按分配对象筛选
            search: 对 title / postal_code / notes 做不区分大小写的子串匹配
        """
        clauses: list[str] = []
        params: list[Any] = []

        if status:
            clauses.append("status = ?")
            params.append(str(status))
        if assigned_to:
            clauses.append("assigned_to_user_id = ?")
            params.append(assigned_to)
        if search and search.strip():
            pattern = f"%{_escape_like(search.strip().lower())}%"
            matches = [
                f"lower(coalesce({col}, '')) LIKE ? ESCAPE '\\'" for col in _SEARCH_COLUMNS
            ]
            clauses.append("(" + " OR ".join(matches) + ")")
            params.extend([pattern] * len(_SEARCH_COLUMNS))

        sql = _SELECT_SQL
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, task_id DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_unassigned(self, search: str | None = None) -> list[Task]:
        """查询未分配池"""
        return await self.list_tasks(status=TaskStatus.UNASSIGNED, search=search)

    async def update_task(self, task: Task, expected_updated_at: datetime) -> bool:
        """整行更新任务

        Returns:
            True 表示写入成功；False 表示记录不存在或已被其他写入修改
        """
        columns = [c for c in _TASK_COLUMNS if c != "task_id"]
        assignments = ", ".join(f"{c} = ?" for c in columns)
        params = self._task_to_params(task)[1:]
        cursor = await self._conn.execute(
            f"UPDATE tasks SET {assignments} WHERE task_id = ? AND updated_at = ?",
            (*params, task.task_id, expected_updated_at.isoformat()),
        )
        return cursor.rowcount == 1

    async def delete_task(self, task_id: str) -> bool:
        """永久删除任务

        Returns:
            True 表示删除了一条记录
        """
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _task_to_params(task: Task) -> tuple[Any, ...]:
        data = task.model_dump(exclude={"has_map_link"})
        params: list[Any] = []
        for column in _TASK_COLUMNS:
            value = data[column]
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, TaskStatus):
                value = value.value
            params.append(value)
        return tuple(params)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        data: dict[str, Any] = dict(zip(_TASK_COLUMNS, row, strict=True))
        for column in _DATETIME_COLUMNS:
            if data[column] is not None:
                data[column] = datetime.fromisoformat(data[column])
        return Task(**data)
