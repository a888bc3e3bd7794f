"""UserService -- 管理员/外勤员工注册与查询"""

from datetime import UTC, datetime

import aiosqlite
import structlog
from fieldops.core.exceptions import ConflictError
from fieldops.core.models import ActivityAction, User, UserRole
from fieldops.core.store import StoreGroup, append_activity_only
from ulid import ULID

from .task_service import build_activity

log = structlog.get_logger()


class UserService:
    """用户业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_user(
        self,
        name: str,
        email: str,
        role: UserRole,
        actor_id: str,
        employee_code: str | None = None,
    ) -> User:
        """注册用户

        Raises:
            ConflictError: email 已被占用
        """
        user = User(
            user_id=str(ULID()),
            name=name.strip(),
            email=email.strip().lower(),
            role=role,
            employee_code=employee_code,
            created_at=datetime.now(UTC),
        )
        async with self._stores.write_lock:
            try:
                await self._stores.user_store.create_user(user)
            except aiosqlite.IntegrityError as e:
                await self._stores.conn.rollback()
                raise ConflictError(f"Email {user.email} is already registered") from e
            await append_activity_only(
                self._stores.conn,
                self._stores.activity_sink,
                build_activity(
                    ActivityAction.USER_CREATED,
                    actor_id,
                    detail={"user_id": user.user_id, "role": user.role.value},
                ),
            )
        log.info("user_created", user_id=user.user_id, role=user.role.value)
        return user

    async def list_users(self, role: UserRole | None = None) -> list[User]:
        """查询用户列表"""
        return await self._stores.user_store.list_users(role)
