"""Task 生命周期规则 -- 纯函数

所有函数接收当前 Task，返回新的 Task（不修改入参），不做任何 IO。
结果经过 Task 模型校验，status 与分配对象的一致性在这里就被保证。

- assign: 无条件置为 Pending（允许重新激活已完成/联系失败的任务）
- unassign: 清空分配信息，回到 Unassigned，可重复调用
- reassign: 换人；Unassigned 提升为 Pending，其余状态保留进度
- change_status: 按 VALID_TRANSITIONS 严格校验，Completed/Verified 时间只写一次
"""

from datetime import datetime
from typing import Any

from .exceptions import InvalidTransitionError
from .models import NewTaskPayload, Task, TaskStatus, validate_transition

# 不参与审计 diff 的簿记字段
_BOOKKEEPING_FIELDS = frozenset({"task_id", "created_at", "updated_at", "has_map_link"})


def _apply(task: Task, **changes: Any) -> Task:
    data = task.model_dump(exclude={"has_map_link"})
    data.update(changes)
    return Task.model_validate(data)


def new_task(
    task_id: str,
    payload: NewTaskPayload,
    now: datetime,
    assignee_id: str | None = None,
) -> Task:
    """由建单数据构造 Task；给定 assignee_id 时直接进入 Pending"""
    task = Task(
        task_id=task_id,
        created_at=now,
        updated_at=now,
        **payload.model_dump(),
    )
    if assignee_id is not None:
        return assign(task, assignee_id, now)
    return task


def assign(task: Task, employee_id: str, now: datetime) -> Task:
    """分配给员工，状态无条件置为 Pending"""
    return _apply(
        task,
        assigned_to_user_id=employee_id,
        status=TaskStatus.PENDING,
        assigned_date=now.date().isoformat(),
        assigned_at=now,
        updated_at=now,
    )


def unassign(task: Task, now: datetime) -> Task:
    """退回未分配池"""
    return _apply(
        task,
        assigned_to_user_id=None,
        status=TaskStatus.UNASSIGNED,
        assigned_date=None,
        assigned_at=None,
        updated_at=now,
    )


def reassign(task: Task, employee_id: str, now: datetime) -> Task:
    """换人，保留进行中的状态"""
    status = TaskStatus.PENDING if task.status == TaskStatus.UNASSIGNED else task.status
    return _apply(
        task,
        assigned_to_user_id=employee_id,
        status=status,
        assigned_date=task.assigned_date or now.date().isoformat(),
        assigned_at=now,
        updated_at=now,
    )


def change_status(task: Task, requested: TaskStatus, now: datetime) -> Task:
    """状态更新

    Raises:
        InvalidTransitionError: 流转不在合法表内
    """
    if requested == task.status:
        return task
    if not validate_transition(task.status, requested):
        raise InvalidTransitionError(task.status.value, requested.value)

    changes: dict[str, Any] = {"status": requested, "updated_at": now}
    if requested == TaskStatus.COMPLETED and task.completed_at is None:
        changes["completed_at"] = now
    if requested == TaskStatus.VERIFIED and task.verified_at is None:
        changes["verified_at"] = now
    return _apply(task, **changes)


def edit_fields(task: Task, now: datetime, **fields: str | None) -> Task:
    """修改备注 / 人工日期时间等自由字段"""
    if not fields:
        return task
    return _apply(task, updated_at=now, **fields)


def snapshot(task: Task) -> dict[str, Any]:
    """JSON 可序列化的字段快照（不含簿记字段）"""
    data = task.model_dump(mode="json")
    return {k: v for k, v in data.items() if k not in _BOOKKEEPING_FIELDS}


def diff(before: Task, after: Task) -> tuple[dict[str, Any], dict[str, Any]]:
    """返回变更字段的前后快照"""
    old = snapshot(before)
    new = snapshot(after)
    changed = {k for k in new if old.get(k) != new[k]}
    return (
        {k: old.get(k) for k in sorted(changed)},
        {k: new[k] for k in sorted(changed)},
    )
