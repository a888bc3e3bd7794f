"""TaskService -- 任务创建/分配/状态更新/删除业务逻辑

分配引擎的编排层：
1. 在 StoreGroup.write_lock 内完成读-改-写
2. 校验任务与员工存在、员工可分配
3. 调用 core.lifecycle 纯函数得到新 Task
4. 单事务写入 Task 变更 + 一条审计记录（变更字段的前后快照）
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiosqlite
import structlog
from fieldops.core import lifecycle
from fieldops.core.exceptions import InvalidTargetError, NotFoundError, ValidationError
from fieldops.core.models import (
    ActivityAction,
    ActivityRecord,
    NewTaskPayload,
    Task,
    TaskStatus,
    TaskUpdatePayload,
    User,
)
from fieldops.core.row_validator import fill_from_map_url
from fieldops.core.store import (
    StoreGroup,
    create_task_with_activity,
    delete_task_with_activity,
    update_task_with_activity,
)
from ulid import ULID

log = structlog.get_logger()


def build_activity(
    action: ActivityAction,
    actor_id: str,
    task_id: str | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    detail: dict[str, Any] | None = None,
) -> ActivityRecord:
    """构造一条审计记录"""
    return ActivityRecord(
        activity_id=str(ULID()),
        ts=datetime.now(UTC),
        actor_id=actor_id,
        action=action,
        task_id=task_id,
        before=before or {},
        after=after or {},
        detail=detail or {},
    )


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    async def get_task(self, task_id: str) -> Task:
        """查询任务详情

        Raises:
            NotFoundError: 任务不存在
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFoundError.task(task_id)
        return task

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """查询任务列表"""
        return await self._stores.task_store.list_tasks(status, assigned_to, search)

    async def list_unassigned(self, search: str | None = None) -> list[Task]:
        """查询未分配池"""
        return await self._stores.task_store.list_unassigned(search)

    async def list_activity(self, task_id: str) -> list[ActivityRecord]:
        """查询任务的审计记录"""
        return await self._stores.activity_store.list_for_task(task_id)

    # ------------------------------------------------------------------
    # 创建 / 删除
    # ------------------------------------------------------------------

    async def create_task(
        self,
        payload: NewTaskPayload,
        actor_id: str,
        assignee_id: str | None = None,
    ) -> Task:
        """创建单条任务，可直接分配

        地图链接可补齐缺失的坐标，直接提供的坐标优先。

        Raises:
            NotFoundError: 指定的员工不存在
            InvalidTargetError: 指定的用户不是可分配员工
        """
        if payload.map_url and (payload.latitude is None or payload.longitude is None):
            latitude, longitude = fill_from_map_url(
                payload.map_url, payload.latitude, payload.longitude
            )
            payload = payload.model_copy(update={"latitude": latitude, "longitude": longitude})

        async with self._stores.write_lock:
            if assignee_id is not None:
                await self._require_employee(assignee_id)

            task = lifecycle.new_task(
                str(ULID()), payload, datetime.now(UTC), assignee_id=assignee_id
            )
            activity = build_activity(
                ActivityAction.TASK_CREATED,
                actor_id,
                task_id=task.task_id,
                after=lifecycle.snapshot(task),
            )
            try:
                await create_task_with_activity(
                    self._stores.conn,
                    self._stores.task_store,
                    self._stores.activity_sink,
                    task,
                    activity,
                )
            except aiosqlite.IntegrityError as e:
                log.warning("task_create_rejected_by_store", error=str(e))
                raise ValidationError("Task violates stored field constraints") from e

        log.info(
            "task_created",
            task_id=task.task_id,
            status=task.status.value,
            assignee_id=assignee_id,
        )
        return task

    async def delete_task(self, task_id: str, actor_id: str) -> None:
        """永久删除任务（不可恢复）

        Raises:
            NotFoundError: 任务不存在
        """
        async with self._stores.write_lock:
            task = await self.get_task(task_id)
            activity = build_activity(
                ActivityAction.TASK_DELETED,
                actor_id,
                task_id=task_id,
                before=lifecycle.snapshot(task),
            )
            deleted = await delete_task_with_activity(
                self._stores.conn,
                self._stores.task_store,
                self._stores.activity_sink,
                task_id,
                activity,
            )
        if not deleted:
            raise NotFoundError.task(task_id)
        log.info("task_deleted", task_id=task_id)

    # ------------------------------------------------------------------
    # 分配引擎
    # ------------------------------------------------------------------

    async def assign_task(self, task_id: str, employee_id: str, actor_id: str) -> Task:
        """分配任务，状态无条件置为 Pending

        Raises:
            NotFoundError: 任务或员工不存在
            InvalidTargetError: 用户不是可分配员工
        """
        async with self._stores.write_lock:
            task = await self.get_task(task_id)
            await self._require_employee(employee_id)
            updated = await self._commit_change(
                task,
                ActivityAction.TASK_ASSIGNED,
                actor_id,
                lambda t, now: lifecycle.assign(t, employee_id, now),
            )
        log.info(
            "task_assigned",
            task_id=task_id,
            employee_id=employee_id,
            from_status=task.status.value,
        )
        return updated

    async def unassign_task(self, task_id: str, actor_id: str) -> Task:
        """退回未分配池，重复调用结果不变

        Raises:
            NotFoundError: 任务不存在
        """
        async with self._stores.write_lock:
            task = await self.get_task(task_id)
            updated = await self._commit_change(
                task,
                ActivityAction.TASK_UNASSIGNED,
                actor_id,
                lifecycle.unassign,
            )
        log.info(
            "task_unassigned",
            task_id=task_id,
            previous_assignee=task.assigned_to_user_id,
        )
        return updated

    async def reassign_task(self, task_id: str, new_employee_id: str, actor_id: str) -> Task:
        """换人，保留进行中的状态（Unassigned 提升为 Pending）

        Raises:
            NotFoundError: 任务或员工不存在
            InvalidTargetError: 用户不是可分配员工
        """
        async with self._stores.write_lock:
            task = await self.get_task(task_id)
            await self._require_employee(new_employee_id)
            updated = await self._commit_change(
                task,
                ActivityAction.TASK_REASSIGNED,
                actor_id,
                lambda t, now: lifecycle.reassign(t, new_employee_id, now),
            )
        log.info(
            "task_reassigned",
            task_id=task_id,
            from_employee=task.assigned_to_user_id,
            to_employee=new_employee_id,
            status=updated.status.value,
        )
        return updated

    async def update_status(self, task_id: str, status: TaskStatus, actor_id: str) -> Task:
        """仅更新状态"""
        return await self.update_task(task_id, TaskUpdatePayload(status=status), actor_id)

    async def update_task(
        self,
        task_id: str,
        changes: TaskUpdatePayload,
        actor_id: str,
    ) -> Task:
        """更新状态与备注/人工日期时间，合并为一条审计记录

        Raises:
            NotFoundError: 任务不存在
            InvalidTransitionError: 状态流转不合法（整次更新不落盘）
        """

        def transform(task: Task, now: datetime) -> Task:
            updated = task
            if changes.status is not None:
                updated = lifecycle.change_status(updated, changes.status, now)
            return lifecycle.edit_fields(updated, now, **changes.free_field_changes())

        async with self._stores.write_lock:
            task = await self.get_task(task_id)
            updated = await self._commit_change(
                task, ActivityAction.TASK_UPDATED, actor_id, transform
            )
        if updated.status != task.status:
            log.info(
                "task_status_changed",
                task_id=task_id,
                from_status=task.status.value,
                to_status=updated.status.value,
            )
        return updated

    async def bulk_assign(
        self,
        task_ids: list[str],
        employee_id: str,
        actor_id: str,
    ) -> tuple[list[str], list[str]]:
        """批量分配给同一员工

        Returns:
            (已分配的 task_id 列表, 不存在的 task_id 列表)

        Raises:
            NotFoundError: 员工不存在
            InvalidTargetError: 用户不是可分配员工
        """
        await self._require_employee(employee_id)

        assigned: list[str] = []
        missing: list[str] = []
        for task_id in dict.fromkeys(task_ids):
            try:
                await self.assign_task(task_id, employee_id, actor_id)
            except NotFoundError as e:
                if e.code != "TASK_NOT_FOUND":
                    raise
                missing.append(task_id)
                continue
            assigned.append(task_id)

        log.info(
            "tasks_bulk_assigned",
            employee_id=employee_id,
            assigned_count=len(assigned),
            missing_count=len(missing),
        )
        return assigned, missing

    async def bulk_delete(
        self,
        task_ids: list[str],
        actor_id: str,
    ) -> tuple[list[str], list[str]]:
        """批量永久删除，每个被删除的任务各一条审计记录

        Returns:
            (已删除的 task_id 列表, 不存在的 task_id 列表)
        """
        deleted: list[str] = []
        missing: list[str] = []
        for task_id in dict.fromkeys(task_ids):
            try:
                await self.delete_task(task_id, actor_id)
            except NotFoundError:
                missing.append(task_id)
                continue
            deleted.append(task_id)

        log.info(
            "tasks_bulk_deleted",
            deleted_count=len(deleted),
            missing_count=len(missing),
        )
        return deleted, missing

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    async def _require_employee(self, user_id: str) -> User:
        user = await self._stores.user_store.get_user(user_id)
        if user is None:
            raise NotFoundError.user(user_id)
        if not user.is_assignable:
            raise InvalidTargetError(user_id)
        return user

    async def _commit_change(
        self,
        task: Task,
        action: ActivityAction,
        actor_id: str,
        transform: Callable[[Task, datetime], Task],
    ) -> Task:
        """应用变更并与审计记录一起提交（调用方持有 write_lock）"""
        updated = transform(task, datetime.now(UTC))
        before, after = lifecycle.diff(task, updated)
        activity = build_activity(
            action,
            actor_id,
            task_id=task.task_id,
            before=before,
            after=after,
        )
        await update_task_with_activity(
            self._stores.conn,
            self._stores.task_store,
            self._stores.activity_sink,
            updated,
            task.updated_at,
            activity,
        )
        return updated
