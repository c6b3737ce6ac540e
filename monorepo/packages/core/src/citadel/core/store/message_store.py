"""MessageStore SQLite 实现 -- 任务评论"""

from datetime import datetime

import aiosqlite

from ..models.message import TaskMessage, TaskMessageView


class SqliteMessageStore:
    """MessageStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_message(self, message: TaskMessage) -> None:
        await self._conn.execute(
            """
            INSERT INTO messages (message_id, task_id, agent_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.message_id,
                message.task_id,
                message.agent_id,
                message.content,
                message.created_at.isoformat(),
            ),
        )

    async def list_for_task(self, task_id: str) -> list[TaskMessageView]:
        """任务评论，时间正序，附带作者显示名"""
        cursor = await self._conn.execute(
            """
            SELECT m.message_id, m.task_id, m.agent_id, m.content, m.created_at,
                   COALESCE(a.name, 'Unknown')
            FROM messages m LEFT JOIN agents a ON a.agent_id = m.agent_id
            WHERE m.task_id = ?
            ORDER BY m.created_at, m.rowid
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_view(row) for row in rows]

    async def list_recent(self, task_id: str, limit: int) -> list[TaskMessageView]:
        """最近 limit 条评论，按时间正序返回"""
        cursor = await self._conn.execute(
            """
            SELECT m.message_id, m.task_id, m.agent_id, m.content, m.created_at,
                   COALESCE(a.name, 'Unknown')
            FROM messages m LEFT JOIN agents a ON a.agent_id = m.agent_id
            WHERE m.task_id = ?
            ORDER BY m.created_at DESC, m.rowid DESC
            LIMIT ?
            """,
            (task_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_view(row) for row in reversed(rows)]

    async def delete_for_task(self, task_id: str) -> int:
        cursor = await self._conn.execute(
            "DELETE FROM messages WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount

    @staticmethod
    def _row_to_view(row: aiosqlite.Row) -> TaskMessageView:
        return TaskMessageView(
            message_id=row[0],
            task_id=row[1],
            agent_id=row[2],
            content=row[3],
            created_at=datetime.fromisoformat(row[4]),
            author_name=row[5],
        )
