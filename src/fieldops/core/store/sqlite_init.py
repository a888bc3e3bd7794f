"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
字段约束（邮编、经纬度范围、状态枚举、标题长度、状态与分配对象一致性）在表上再校验一次。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id        TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    email          TEXT NOT NULL UNIQUE,
    role           TEXT NOT NULL DEFAULT 'employee'
                   CHECK (role IN ('admin', 'employee')),
    employee_code  TEXT,
    active         INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT NOT NULL
);
"""

_USERS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);",
]

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id              TEXT PRIMARY KEY,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL,
    title                TEXT NOT NULL
                         CHECK (length(title) BETWEEN 1 AND 500),
    client_name          TEXT CHECK (client_name IS NULL OR length(client_name) <= 200),
    postal_code          TEXT CHECK (
                             postal_code IS NULL
                             OR (length(postal_code) = 6 AND postal_code NOT GLOB '*[^0-9]*')
                         ),
    map_url              TEXT,
    latitude             REAL CHECK (latitude IS NULL OR latitude BETWEEN -90 AND 90),
    longitude            REAL CHECK (longitude IS NULL OR longitude BETWEEN -180 AND 180),
    assigned_to_user_id  TEXT,
    status               TEXT NOT NULL DEFAULT 'Unassigned'
                         CHECK (status IN (
                             'Unassigned', 'Pending', 'Completed', 'Verified',
                             'LeftJob', 'NotSharingInfo', 'NotPicking', 'SwitchOff',
                             'IncorrectNumber', 'WrongAddress'
                         )),
    assigned_date        TEXT,
    assigned_at          TEXT,
    completed_at         TEXT,
    verified_at          TEXT,
    manual_date          TEXT,
    manual_time          TEXT,
    notes                TEXT,

    CHECK ((status = 'Unassigned') = (assigned_to_user_id IS NULL)),
    FOREIGN KEY (assigned_to_user_id) REFERENCES users(user_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assigned_to_user_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# activity_log 表 DDL（append-only，不引用 tasks，任务删除后审计记录仍保留）
_ACTIVITY_DDL = """
CREATE TABLE IF NOT EXISTS activity_log (
    activity_id  TEXT PRIMARY KEY,
    ts           TEXT NOT NULL,
    actor_id     TEXT NOT NULL,
    action       TEXT NOT NULL,
    task_id      TEXT,
    before       TEXT NOT NULL DEFAULT '{}',
    after        TEXT NOT NULL DEFAULT '{}',
    detail       TEXT NOT NULL DEFAULT '{}'
);
"""

_ACTIVITY_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activity_task_ts ON activity_log(task_id, ts);",
    "CREATE INDEX IF NOT EXISTS idx_activity_action ON activity_log(action);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_USERS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_ACTIVITY_DDL)

    # 创建索引
    for idx_sql in _USERS_INDEXES + _TASKS_INDEXES + _ACTIVITY_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
