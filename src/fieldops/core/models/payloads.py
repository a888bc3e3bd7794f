"""结构化 payload 定义

NewTaskPayload：单条创建与批量导入共用的建单数据。
BulkUploadDetail：批量导入审计事件的 detail。
TaskUpdatePayload：状态与自由字段更新。
"""

from pydantic import BaseModel, Field, field_validator

from ..config import CLIENT_NAME_MAX_LENGTH, TITLE_MAX_LENGTH
from .enums import TaskStatus
from .task import is_valid_postal_code


class NewTaskPayload(BaseModel):
    """建单数据（已清洗）"""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    client_name: str | None = Field(default=None, max_length=CLIENT_NAME_MAX_LENGTH)
    postal_code: str | None = None
    map_url: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    notes: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("client_name", "postal_code", "map_url", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("postal_code")
    @classmethod
    def _check_postal_code(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_postal_code(value):
            raise ValueError(f"Pincode must be exactly 6 digits (got: {value})")
        return value


class BulkUploadDetail(BaseModel):
    """TASKS_BULK_UPLOADED 事件 detail"""

    file_name: str
    row_count: int
    success_count: int
    error_count: int


class TaskUpdatePayload(BaseModel):
    """任务更新数据

    只有显式传入的字段才会被修改（通过 model_fields_set 判断），
    notes 等自由字段可显式置空。
    """

    status: TaskStatus | None = None
    notes: str | None = None
    manual_date: str | None = Field(default=None, max_length=50)
    manual_time: str | None = Field(default=None, max_length=50)

    def free_field_changes(self) -> dict[str, str | None]:
        """返回显式传入的自由字段"""
        return {
            name: getattr(self, name)
            for name in ("notes", "manual_date", "manual_time")
            if name in self.model_fields_set
        }
