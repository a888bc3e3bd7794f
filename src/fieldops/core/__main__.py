"""CLI 入口模块 -- python -m fieldops.core <command>

支持的命令：
  init-db                                     初始化数据库表结构
  add-user <name> <email> <role> [code]       注册管理员或外勤员工
"""

import asyncio
import sys
from datetime import UTC, datetime

import aiosqlite
from ulid import ULID

from .config import get_db_path

USAGE = """用法: python -m fieldops.core <command>
命令:
  init-db                                 初始化数据库表结构
  add-user <name> <email> <role> [code]   注册用户（role: admin / employee）"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "add-user":
        if len(sys.argv) not in (5, 6):
            print(USAGE)
            sys.exit(1)
        name, email, role = sys.argv[2:5]
        employee_code = sys.argv[5] if len(sys.argv) == 6 else None
        asyncio.run(add_user(name, email, role, employee_code))
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, add-user")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def add_user(name: str, email: str, role: str, employee_code: str | None) -> None:
    """注册用户并输出 user_id"""
    from .models import User, UserRole
    from .store import create_store_group

    try:
        user_role = UserRole(role)
    except ValueError:
        print(f"未知角色: {role}（可选: admin, employee）")
        sys.exit(1)

    store_group = await create_store_group(get_db_path())
    try:
        user = User(
            user_id=str(ULID()),
            name=name,
            email=email,
            role=user_role,
            employee_code=employee_code,
            created_at=datetime.now(UTC),
        )
        try:
            await store_group.user_store.create_user(user)
        except aiosqlite.IntegrityError:
            print(f"邮箱已被注册: {user.email}")
            sys.exit(1)
        await store_group.conn.commit()
        print(f"已创建用户 {user.user_id} ({user.role})")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
