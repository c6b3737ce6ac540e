"""SubscriptionStore SQLite 实现

所有写入方都通过 ensure_subscription 订阅，没有其他插入路径。
"""

from datetime import UTC, datetime

import aiosqlite
from ulid import ULID

from ..models.subscription import Subscription


class SqliteSubscriptionStore:
    """SubscriptionStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def ensure_subscription(self, agent_id: str, task_id: str) -> str:
        """确保 (agent, task) 订阅存在

        已存在时返回既有 ID，不产生任何写入。

        Returns:
            subscription_id
        """
        cursor = await self._conn.execute(
            "SELECT subscription_id FROM subscriptions WHERE agent_id = ? AND task_id = ?",
            (agent_id, task_id),
        )
        row = await cursor.fetchone()
        if row is not None:
            return row[0]

        subscription_id = str(ULID())
        await self._conn.execute(
            """
            INSERT INTO subscriptions (subscription_id, agent_id, task_id, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (subscription_id, agent_id, task_id, datetime.now(UTC).isoformat()),
        )
        return subscription_id

    async def remove_subscription(self, agent_id: str, task_id: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM subscriptions WHERE agent_id = ? AND task_id = ?",
            (agent_id, task_id),
        )
        return cursor.rowcount > 0

    async def list_by_task(self, task_id: str) -> list[Subscription]:
        """按订阅先后顺序返回任务的订阅者"""
        cursor = await self._conn.execute(
            "SELECT * FROM subscriptions WHERE task_id = ? ORDER BY created_at, rowid",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_subscription(row) for row in rows]

    async def list_by_agent(self, agent_id: str) -> list[Subscription]:
        cursor = await self._conn.execute(
            "SELECT * FROM subscriptions WHERE agent_id = ? ORDER BY created_at, rowid",
            (agent_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_subscription(row) for row in rows]

    async def delete_for_task(self, task_id: str) -> int:
        cursor = await self._conn.execute(
            "DELETE FROM subscriptions WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount

    @staticmethod
    def _row_to_subscription(row: aiosqlite.Row) -> Subscription:
        return Subscription(
            subscription_id=row[0],
            agent_id=row[1],
            task_id=row[2],
            created_at=datetime.fromisoformat(row[3]),
        )
