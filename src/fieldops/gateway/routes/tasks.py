"""任务路由

POST   /tasks                  建单（可直接分配）
GET    /tasks                  列表，支持 status / assignedTo / search 筛选
GET    /tasks/unassigned       未分配池
POST   /tasks/bulk/assign      批量分配
DELETE /tasks/bulk/delete      批量删除
GET    /tasks/{task_id}        详情 + 审计记录
POST   /tasks/{task_id}/assign
POST   /tasks/{task_id}/unassign
PUT    /tasks/{task_id}/reassign
PUT    /tasks/{task_id}        状态/备注/人工日期时间
DELETE /tasks/{task_id}
"""

from fastapi import APIRouter, Body, Depends, Query
from fieldops.core.models import TaskStatus

from ..deps import get_actor_id, get_task_service
from ..schemas import (
    ActivityView,
    AssignRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    MessageResponse,
    ReassignRequest,
    TaskCreateRequest,
    TaskDetailResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
    TaskView,
)
from ..services.task_service import TaskService

router = APIRouter()


@router.post("/tasks", status_code=201, response_model=TaskResponse)
async def create_task(
    body: TaskCreateRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> TaskResponse:
    task = await service.create_task(
        body.to_payload(), actor_id, assignee_id=body.assigned_to_user_id
    )
    return TaskResponse(message="Task created successfully", task=TaskView.from_task(task))


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
    search: str | None = Query(default=None, description="标题/邮编/备注子串"),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """查询任务列表，按 created_at 倒序"""
    tasks = await service.list_tasks(status, assigned_to, search)
    return TaskListResponse(count=len(tasks), tasks=[TaskView.from_task(t) for t in tasks])


@router.get("/tasks/unassigned", response_model=TaskListResponse)
async def list_unassigned(
    search: str | None = Query(default=None, description="标题/邮编/备注子串"),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """未分配池"""
    tasks = await service.list_unassigned(search)
    return TaskListResponse(count=len(tasks), tasks=[TaskView.from_task(t) for t in tasks])


# 需在 /tasks/{task_id} 系列路由之前注册
@router.post("/tasks/bulk/assign", response_model=BulkAssignResponse)
async def bulk_assign(
    body: BulkAssignRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> BulkAssignResponse:
    assigned, missing = await service.bulk_assign(body.task_ids, body.assignee_id, actor_id)
    return BulkAssignResponse(
        message=f"{len(assigned)} tasks have been assigned to user {body.assignee_id}",
        assigned_task_ids=assigned,
        missing_task_ids=missing,
    )


@router.delete("/tasks/bulk/delete", response_model=BulkDeleteResponse)
async def bulk_delete(
    body: BulkDeleteRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> BulkDeleteResponse:
    deleted, missing = await service.bulk_delete(body.task_ids, actor_id)
    return BulkDeleteResponse(
        message=f"Deleted {len(deleted)} tasks",
        deleted_task_ids=deleted,
        missing_task_ids=missing,
    )


@router.get("/tasks/{task_id}", response_model=TaskDetailResponse)
async def get_task_detail(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """任务详情，附带按时间排序的审计记录"""
    task = await service.get_task(task_id)
    activity = await service.list_activity(task_id)
    return TaskDetailResponse(
        task=TaskView.from_task(task),
        activity=[ActivityView.from_record(a) for a in activity],
    )


@router.post("/tasks/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: str,
    body: AssignRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> TaskResponse:
    task = await service.assign_task(task_id, body.employee_id, actor_id)
    return TaskResponse(message="Task assigned successfully", task=TaskView.from_task(task))


@router.post("/tasks/{task_id}/unassign", response_model=TaskResponse)
async def unassign_task(
    task_id: str,
    _body: dict | None = Body(default=None),
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> TaskResponse:
    task = await service.unassign_task(task_id, actor_id)
    return TaskResponse(message="Task unassigned successfully", task=TaskView.from_task(task))


@router.put("/tasks/{task_id}/reassign", response_model=TaskResponse)
async def reassign_task(
    task_id: str,
    body: ReassignRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> TaskResponse:
    task = await service.reassign_task(task_id, body.new_employee_id, actor_id)
    return TaskResponse(message="Task reassigned successfully", task=TaskView.from_task(task))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> TaskResponse:
    task = await service.update_task(task_id, body, actor_id)
    return TaskResponse(message="Task updated successfully", task=TaskView.from_task(task))


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
    actor_id: str = Depends(get_actor_id),
) -> MessageResponse:
    await service.delete_task(task_id, actor_id)
    return MessageResponse(message="Task deleted successfully")
