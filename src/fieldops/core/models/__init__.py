"""fieldops Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import ActivityRecord
from .enums import (
    OUTCOME_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ActivityAction,
    TaskStatus,
    UserRole,
    validate_transition,
)
from .payloads import BulkUploadDetail, NewTaskPayload, TaskUpdatePayload
from .task import Task, is_valid_postal_code
from .user import User

__all__ = [
    # 枚举
    "TaskStatus",
    "UserRole",
    "ActivityAction",
    # 状态机
    "VALID_TRANSITIONS",
    "OUTCOME_STATES",
    "TERMINAL_STATES",
    "validate_transition",
    # Task
    "Task",
    "is_valid_postal_code",
    # User
    "User",
    # Activity
    "ActivityRecord",
    # Payloads
    "NewTaskPayload",
    "BulkUploadDetail",
    "TaskUpdatePayload",
]
