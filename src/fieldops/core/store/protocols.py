"""Store Protocol 接口定义

定义 TaskStore、UserStore、ActivitySink 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
服务层只依赖这些接口，审计写入方可以替换为任意实现。
"""

from datetime import datetime
from typing import Protocol

from ..models.activity import ActivityRecord
from ..models.enums import TaskStatus, UserRole
from ..models.task import Task
from ..models.user import User


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(
        self,
        status: TaskStatus | str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """查询任务列表"""
        ...

    async def list_unassigned(self, search: str | None = None) -> list[Task]:
        """查询未分配池"""
        ...

    async def update_task(self, task: Task, expected_updated_at: datetime) -> bool:
        """整行更新，返回是否写入成功"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """永久删除，返回是否删除了记录"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def create_user(self, user: User) -> None:
        """插入用户记录"""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...

    async def list_users(self, role: UserRole | str | None = None) -> list[User]:
        """查询用户列表"""
        ...


class ActivitySink(Protocol):
    """审计日志写入接口

    append-only：只允许追加，不允许更新或删除。
    """

    async def record(self, activity: ActivityRecord) -> None:
        """追加一条审计记录"""
        ...
