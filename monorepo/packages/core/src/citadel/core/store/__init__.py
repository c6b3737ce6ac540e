"""Citadel Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .activity_store import SqliteActivityStore
from .agent_store import SqliteAgentStore
from .document_store import SqliteDocumentStore
from .message_store import SqliteMessageStore
from .notification_store import SqliteNotificationStore
from .protocols import NotificationStore, SubscriptionStore, TaskStore
from .rule_store import SqlitePreflightLogStore, SqliteRuleStore
from .sqlite_init import init_db
from .subscription_store import SqliteSubscriptionStore
from .task_store import SqliteTaskStore
from .transaction import atomic


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接与写锁"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.agent_store = SqliteAgentStore(conn)
        self.task_store: TaskStore = SqliteTaskStore(conn)
        self.message_store = SqliteMessageStore(conn)
        self.subscription_store: SubscriptionStore = SqliteSubscriptionStore(conn)
        self.notification_store: NotificationStore = SqliteNotificationStore(conn)
        self.document_store = SqliteDocumentStore(conn)
        self.activity_store = SqliteActivityStore(conn)
        self.rule_store = SqliteRuleStore(conn)
        self.preflight_log_store = SqlitePreflightLogStore(conn)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteAgentStore",
    "SqliteTaskStore",
    "SqliteMessageStore",
    "SqliteSubscriptionStore",
    "SqliteNotificationStore",
    "SqliteDocumentStore",
    "SqliteActivityStore",
    "SqliteRuleStore",
    "SqlitePreflightLogStore",
    "init_db",
    "atomic",
]
