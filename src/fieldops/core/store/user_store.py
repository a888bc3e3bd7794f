"""UserStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.enums import UserRole
from ..models.user import User


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, user: User) -> None:
        """插入用户记录（email 重复时抛出 aiosqlite.IntegrityError）"""
        await self._conn.execute(
            """
            INSERT INTO users (user_id, name, email, role, employee_code, active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user.user_id,
                user.name,
                user.email,
                user.role.value,
                user.employee_code,
                1 if user.active else 0,
                user.created_at.isoformat(),
            ),
        )

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        cursor = await self._conn.execute(
            "SELECT user_id, name, email, role, employee_code, active, created_at "
            "FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def list_users(self, role: UserRole | str | None = None) -> list[User]:
        """查询用户列表，支持按角色筛选，按姓名排序"""
        sql = (
            "SELECT user_id, name, email, role, employee_code, active, created_at FROM users"
        )
        if role:
            cursor = await self._conn.execute(
                f"{sql} WHERE role = ? ORDER BY name ASC",
                (str(role),),
            )
        else:
            cursor = await self._conn.execute(f"{sql} ORDER BY name ASC")
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        return User(
            user_id=row[0],
            name=row[1],
            email=row[2],
            role=UserRole(row[3]),
            employee_code=row[4],
            active=bool(row[5]),
            created_at=datetime.fromisoformat(row[6]),
        )
