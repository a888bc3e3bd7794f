"""HTTP 请求/响应模型

对外 JSON 使用 camelCase；所有变更类响应带 success + message。
"""

from datetime import datetime
from typing import Any

from fieldops.core.bulk_import import ImportReport
from fieldops.core.models import (
    ActivityRecord,
    NewTaskPayload,
    Task,
    TaskStatus,
    TaskUpdatePayload,
    User,
    UserRole,
)
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase 别名基类"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------------------------------------------------------
# 请求
# ----------------------------------------------------------------------


class TaskCreateRequest(NewTaskPayload):
    """POST /tasks 请求体"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    assigned_to_user_id: str | None = Field(default=None, description="创建即分配的员工")

    def to_payload(self) -> NewTaskPayload:
        return NewTaskPayload(**self.model_dump(exclude={"assigned_to_user_id"}))


class TaskUpdateRequest(TaskUpdatePayload):
    """PUT /tasks/{task_id} 请求体"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssignRequest(ApiModel):
    """POST /tasks/{task_id}/assign 请求体"""

    employee_id: str = Field(min_length=1)


class ReassignRequest(ApiModel):
    """PUT /tasks/{task_id}/reassign 请求体"""

    new_employee_id: str = Field(min_length=1)


class BulkAssignRequest(ApiModel):
    """POST /tasks/bulk/assign 请求体"""

    task_ids: list[str] = Field(min_length=1)
    assignee_id: str = Field(min_length=1)


class BulkDeleteRequest(ApiModel):
    """DELETE /tasks/bulk/delete 请求体"""

    task_ids: list[str]


class UserCreateRequest(ApiModel):
    """POST /users 请求体"""

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    role: UserRole = UserRole.EMPLOYEE
    employee_code: str | None = None


# ----------------------------------------------------------------------
# 响应
# ----------------------------------------------------------------------


class TaskView(ApiModel):
    """任务对外视图"""

    task_id: str
    created_at: datetime
    updated_at: datetime
    title: str
    client_name: str | None
    postal_code: str | None
    map_url: str | None
    has_map_link: bool
    latitude: float | None
    longitude: float | None
    assigned_to_user_id: str | None
    status: TaskStatus
    assigned_date: str | None
    assigned_at: datetime | None
    completed_at: datetime | None
    verified_at: datetime | None
    manual_date: str | None
    manual_time: str | None
    notes: str | None

    @classmethod
    def from_task(cls, task: Task) -> "TaskView":
        return cls.model_validate(task.model_dump())


class ActivityView(ApiModel):
    """审计记录对外视图"""

    activity_id: str
    ts: datetime
    actor_id: str
    action: str
    task_id: str | None
    before: dict[str, Any]
    after: dict[str, Any]
    detail: dict[str, Any]

    @classmethod
    def from_record(cls, record: ActivityRecord) -> "ActivityView":
        return cls.model_validate(record.model_dump())


class UserView(ApiModel):
    """用户对外视图"""

    user_id: str
    name: str
    email: str
    role: UserRole
    employee_code: str | None
    active: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls.model_validate(user.model_dump())


class TaskResponse(ApiModel):
    """单个任务的变更响应"""

    success: bool = True
    message: str
    task: TaskView


class TaskListResponse(ApiModel):
    """任务列表响应"""

    success: bool = True
    count: int
    tasks: list[TaskView]


class TaskDetailResponse(ApiModel):
    """任务详情响应"""

    success: bool = True
    task: TaskView
    activity: list[ActivityView]


class MessageResponse(ApiModel):
    """只带消息的响应"""

    success: bool = True
    message: str


class BulkAssignResponse(ApiModel):
    """批量分配响应"""

    success: bool = True
    message: str
    assigned_task_ids: list[str]
    missing_task_ids: list[str]


class BulkDeleteResponse(ApiModel):
    """批量删除响应"""

    success: bool = True
    message: str
    deleted_task_ids: list[str]
    missing_task_ids: list[str]


class BulkUploadResponse(ApiModel):
    """批量导入响应"""

    success: bool = True
    message: str
    success_count: int
    error_count: int
    errors: list[str]
    has_more_errors: bool

    @classmethod
    def from_report(cls, report: ImportReport) -> "BulkUploadResponse":
        return cls(
            message=(
                f"Imported {report.success_count} tasks"
                + (f", {report.error_count} rows rejected" if report.error_count else "")
            ),
            **report.model_dump(),
        )


class UserResponse(ApiModel):
    """用户创建响应"""

    success: bool = True
    message: str
    user: UserView


class UserListResponse(ApiModel):
    """用户列表响应"""

    success: bool = True
    users: list[UserView]
