"""Activity Domain Model

审计日志 append-only，不允许更新或删除。
before/after 只记录本次操作涉及的字段快照。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import ActivityAction


class ActivityRecord(BaseModel):
    """ActivityRecord 数据模型"""

    activity_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    ts: datetime = Field(description="发生时间")
    actor_id: str = Field(description="操作者标识")
    action: ActivityAction = Field(description="动作类型")
    task_id: str | None = Field(default=None, description="关联的 Task ID，批量导入为空")
    before: dict[str, Any] = Field(default_factory=dict, description="变更前字段快照")
    after: dict[str, Any] = Field(default_factory=dict, description="变更后字段快照")
    detail: dict[str, Any] = Field(default_factory=dict, description="附加信息")
