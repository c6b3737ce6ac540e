"""ActivityStore SQLite 实现

activities 表 append-only：只允许插入，不允许更新或删除。
"""

from datetime import datetime

import aiosqlite

from ..models.activity import Activity


class SqliteActivityStore:
    """ActivityStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_activity(self, activity: Activity) -> None:
        await self._conn.execute(
            """
            INSERT INTO activities (activity_id, agent_id, action, target_type,
                                    target_id, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                activity.activity_id,
                activity.agent_id,
                activity.action,
                activity.target_type,
                activity.target_id,
                activity.description,
                activity.created_at.isoformat(),
            ),
        )

    async def list_recent(
        self,
        limit: int,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> list[Activity]:
        """最近的活动，最新优先"""
        clauses: list[str] = []
        params: list = []
        if target_type:
            clauses.append("target_type = ?")
            params.append(target_type)
        if target_id:
            clauses.append("target_id = ?")
            params.append(target_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM activities {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (*params, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    @staticmethod
    def _row_to_activity(row: aiosqlite.Row) -> Activity:
        return Activity(
            activity_id=row[0],
            agent_id=row[1],
            action=row[2],
            target_type=row[3],
            target_id=row[4],
            description=row[5],
            created_at=datetime.fromisoformat(row[6]),
        )
