"""fieldops 异常体系

每个异常携带 code 与 status_code，由 gateway 统一映射为 HTTP 响应。
"""


class FieldOpsError(Exception):
    """fieldops 基础异常"""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        """
        Args:
            message: 面向调用方的可读描述
            code: 覆盖默认错误码
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(FieldOpsError):
    """字段缺失或格式错误，调用方可自行修正"""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidTransitionError(ValidationError):
    """状态更新不在合法流转表内"""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Cannot change status from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class NotFoundError(FieldOpsError):
    """引用的 task 或 user 不存在"""

    code = "NOT_FOUND"
    status_code = 404

    @classmethod
    def task(cls, task_id: str) -> "NotFoundError":
        return cls(f"Task with id {task_id} does not exist", code="TASK_NOT_FOUND")

    @classmethod
    def user(cls, user_id: str) -> "NotFoundError":
        return cls(f"User with id {user_id} does not exist", code="USER_NOT_FOUND")


class InvalidTargetError(FieldOpsError):
    """引用的 user 存在，但不是可分配的员工"""

    code = "INVALID_ASSIGNEE"
    status_code = 404

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} is not an active employee")
        self.user_id = user_id


class ConflictError(FieldOpsError):
    """并发写入冲突：读取后记录已被其他请求修改"""

    code = "CONFLICT"
    status_code = 409
