"""枚举定义

包含 TaskStatus 状态机、UserRole、ActivityAction 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 OUTCOME_STATES / TERMINAL_STATES 集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    # 未分配池
    UNASSIGNED = "Unassigned"

    # 已分配，外勤进行中
    PENDING = "Pending"

    # 完成 -> 核验
    COMPLETED = "Completed"
    VERIFIED = "Verified"

    # 联系失败类结果状态（仅能从 Pending 进入）
    LEFT_JOB = "LeftJob"
    NOT_SHARING_INFO = "NotSharingInfo"
    NOT_PICKING = "NotPicking"
    SWITCH_OFF = "SwitchOff"
    INCORRECT_NUMBER = "IncorrectNumber"
    WRONG_ADDRESS = "WrongAddress"


OUTCOME_STATES: frozenset[TaskStatus] = frozenset(
    {
        TaskStatus.LEFT_JOB,
        TaskStatus.NOT_SHARING_INFO,
        TaskStatus.NOT_PICKING,
        TaskStatus.SWITCH_OFF,
        TaskStatus.INCORRECT_NUMBER,
        TaskStatus.WRONG_ADDRESS,
    }
)

# 状态更新的合法流转
# Unassigned -> Pending 只能通过分配完成，不允许直接改状态
VALID_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.UNASSIGNED: frozenset(),
    TaskStatus.PENDING: frozenset({TaskStatus.COMPLETED, *OUTCOME_STATES}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.VERIFIED}),
    TaskStatus.VERIFIED: frozenset(),
    **{status: frozenset() for status in OUTCOME_STATES},
}

# 没有任何状态更新出口的状态（重新分配仍可把任务拉回 Pending）
TERMINAL_STATES: frozenset[TaskStatus] = frozenset({TaskStatus.VERIFIED, *OUTCOME_STATES})


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class ActivityAction(StrEnum):
    """审计日志动作类型"""

    TASK_CREATED = "TASK_CREATED"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UNASSIGNED = "TASK_UNASSIGNED"
    TASK_REASSIGNED = "TASK_REASSIGNED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    TASKS_BULK_UPLOADED = "TASKS_BULK_UPLOADED"
    USER_CREATED = "USER_CREATED"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态更新流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, frozenset())
    return to_status in allowed
