"""NotificationStore SQLite 实现

未投递查询按 created_at 正序（同一时刻按插入顺序），
保证同一次 fan-out 中 mention 通知先于 comment 通知。
"""

from datetime import datetime

import aiosqlite

from ..models.notification import Notification, PendingNotification

_NOTIFICATION_COLUMNS = """
    n.notification_id, n.agent_id, n.author_agent_id, n.author_name, n.type,
    n.message, n.source_task_id, n.read, n.delivered, n.created_at
"""


class SqliteNotificationStore:
    """NotificationStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_notification(self, notification: Notification) -> None:
        await self._conn.execute(
            """
            INSERT INTO notifications (notification_id, agent_id, author_agent_id,
                                       author_name, type, message, source_task_id,
                                       read, delivered, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                notification.notification_id,
                notification.agent_id,
                notification.author_agent_id,
                notification.author_name,
                notification.type.value,
                notification.message,
                notification.source_task_id,
                int(notification.read),
                int(notification.delivered),
                notification.created_at.isoformat(),
            ),
        )

    async def get_notification(self, notification_id: str) -> Notification | None:
        cursor = await self._conn.execute(
            f"SELECT {_NOTIFICATION_COLUMNS} FROM notifications n WHERE n.notification_id = ?",
            (notification_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_notification(row) if row else None

    async def list_undelivered(self, limit: int) -> list[PendingNotification]:
        """未投递通知，最旧优先，附带接收者名称 / 会话键 / 角色"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_NOTIFICATION_COLUMNS},
                   COALESCE(a.name, 'Unknown'), a.session_key, a.role
            FROM notifications n LEFT JOIN agents a ON a.agent_id = n.agent_id
            WHERE n.delivered = 0
            ORDER BY n.created_at, n.rowid
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()
        return [
            PendingNotification(
                **self._row_to_notification(row).model_dump(),
                agent_name=row[10],
                agent_session_key=row[11],
                agent_role=row[12],
            )
            for row in rows
        ]

    async def list_for_agent(
        self,
        agent_id: str,
        unread_only: bool = False,
    ) -> list[Notification]:
        """某 agent 的通知，最新优先"""
        sql = f"SELECT {_NOTIFICATION_COLUMNS} FROM notifications n WHERE n.agent_id = ?"
        if unread_only:
            sql += " AND n.read = 0"
        sql += " ORDER BY n.created_at DESC, n.rowid DESC"
        cursor = await self._conn.execute(sql, (agent_id,))
        rows = await cursor.fetchall()
        return [self._row_to_notification(row) for row in rows]

    async def mark_delivered(self, notification_id: str) -> bool:
        cursor = await self._conn.execute(
            "UPDATE notifications SET delivered = 1 WHERE notification_id = ?",
            (notification_id,),
        )
        return cursor.rowcount > 0

    async def mark_read(self, notification_id: str) -> bool:
        cursor = await self._conn.execute(
            "UPDATE notifications SET read = 1 WHERE notification_id = ?",
            (notification_id,),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_notification(row: aiosqlite.Row) -> Notification:
        return Notification(
            notification_id=row[0],
            agent_id=row[1],
            author_agent_id=row[2],
            author_name=row[3],
            type=row[4],
            message=row[5],
            source_task_id=row[6],
            read=bool(row[7]),
            delivered=bool(row[8]),
            created_at=datetime.fromisoformat(row[9]),
        )
