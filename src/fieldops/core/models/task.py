"""Task Domain Model

Task 是派发的核心实体：案件编号、地址信息、分配对象与生命周期时间戳。
status 与 assigned_to_user_id 必须满足：Unassigned <=> 无分配对象。
"""

import re
from datetime import datetime

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from ..config import CLIENT_NAME_MAX_LENGTH, TITLE_MAX_LENGTH
from .enums import TaskStatus

POSTAL_CODE_PATTERN = re.compile(r"[0-9]{6}")


def is_valid_postal_code(value: str) -> bool:
    """邮编必须恰好 6 位 ASCII 数字"""
    return bool(POSTAL_CODE_PATTERN.fullmatch(value))


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间，同时用作写入冲突检测")
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="案件编号")
    client_name: str | None = Field(default=None, max_length=CLIENT_NAME_MAX_LENGTH)
    postal_code: str | None = Field(default=None, description="6 位邮编")
    map_url: str | None = Field(default=None, description="地图链接")
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    assigned_to_user_id: str | None = Field(default=None, description="分配的外勤员工 ID")
    status: TaskStatus = Field(default=TaskStatus.UNASSIGNED, description="当前状态")
    assigned_date: str | None = Field(default=None, description="分配日期 YYYY-MM-DD")
    assigned_at: datetime | None = Field(default=None, description="分配时间")
    completed_at: datetime | None = Field(default=None, description="首次完成时间")
    verified_at: datetime | None = Field(default=None, description="首次核验时间")
    manual_date: str | None = Field(default=None, description="人工填写日期")
    manual_time: str | None = Field(default=None, description="人工填写时间")
    notes: str | None = Field(default=None)

    @computed_field
    @property
    def has_map_link(self) -> bool:
        return bool(self.map_url)

    @field_validator("postal_code")
    @classmethod
    def _check_postal_code(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_postal_code(value):
            raise ValueError(f"postal_code must be exactly 6 digits (got: {value})")
        return value

    @model_validator(mode="after")
    def _check_assignment_consistency(self) -> "Task":
        unassigned = self.status == TaskStatus.UNASSIGNED
        if unassigned != (self.assigned_to_user_id is None):
            raise ValueError(
                "status Unassigned requires no assignee and any other status requires one"
            )
        return self
