"""User Domain Model

管理员或外勤员工；只有 active 的 employee 可以作为分配对象。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import UserRole


class User(BaseModel):
    """User 数据模型"""

    user_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, description="唯一邮箱")
    role: UserRole = Field(default=UserRole.EMPLOYEE)
    employee_code: str | None = Field(default=None, description="外部员工编号")
    active: bool = Field(default=True)
    created_at: datetime = Field(description="创建时间")

    @property
    def is_assignable(self) -> bool:
        """是否可作为任务分配对象"""
        return self.role == UserRole.EMPLOYEE and self.active
