"""ActivityStore SQLite 实现

审计日志 append-only：只允许插入，不允许更新或删除。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.activity import ActivityRecord
from ..models.enums import ActivityAction


class SqliteActivityStore:
    """ActivitySink 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def record(self, activity: ActivityRecord) -> None:
        """追加审计记录（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO activity_log (activity_id, ts, actor_id, action, task_id,
                                      before, after, detail)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                activity.activity_id,
                activity.ts.isoformat(),
                activity.actor_id,
                activity.action.value,
                activity.task_id,
                json.dumps(activity.before, ensure_ascii=False),
                json.dumps(activity.after, ensure_ascii=False),
                json.dumps(activity.detail, ensure_ascii=False),
            ),
        )

    async def list_for_task(self, task_id: str) -> list[ActivityRecord]:
        """查询指定任务的审计记录，按时间正序"""
        cursor = await self._conn.execute(
            "SELECT * FROM activity_log WHERE task_id = ? ORDER BY ts ASC, activity_id ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    async def list_by_action(self, action: ActivityAction) -> list[ActivityRecord]:
        """按动作类型查询审计记录，按时间正序"""
        cursor = await self._conn.execute(
            "SELECT * FROM activity_log WHERE action = ? ORDER BY ts ASC, activity_id ASC",
            (action.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    @staticmethod
    def _row_to_activity(row: aiosqlite.Row) -> ActivityRecord:
        """将数据库行转换为 ActivityRecord 模型"""
        return ActivityRecord(
            activity_id=row[0],
            ts=datetime.fromisoformat(row[1]),
            actor_id=row[2],
            action=ActivityAction(row[3]),
            task_id=row[4],
            before=json.loads(row[5]) if row[5] else {},
            after=json.loads(row[6]) if row[6] else {},
            detail=json.loads(row[7]) if row[7] else {},
        )
