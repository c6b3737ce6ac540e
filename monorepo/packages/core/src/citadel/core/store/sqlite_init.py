"""SQLite 数据库初始化

PRAGMA 配置 + 全部表 DDL + 索引创建。
使用 aiosqlite 异步操作，可重复执行（IF NOT EXISTS）。
"""

import aiosqlite

# agents 表 DDL（name 大小写不敏感唯一）
_AGENTS_DDL = """
CREATE TABLE IF NOT EXISTS agents (
    agent_id      TEXT PRIMARY KEY,
    name          TEXT NOT NULL COLLATE NOCASE UNIQUE,
    role          TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'idle',
    level         TEXT NOT NULL DEFAULT 'specialist',
    session_key   TEXT,
    current_task  TEXT,
    avatar_emoji  TEXT NOT NULL DEFAULT '',
    last_active   TEXT NOT NULL
);
"""

_AGENTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_agents_status ON agents(status);",
    "CREATE INDEX IF NOT EXISTS idx_agents_session_key ON agents(session_key);",
]

# tasks 表 DDL（tags / assignee_ids 以 JSON 数组存储）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id       TEXT PRIMARY KEY,
    title         TEXT NOT NULL,
    description   TEXT,
    status        TEXT NOT NULL DEFAULT 'inbox',
    priority      TEXT NOT NULL DEFAULT 'medium',
    tags          TEXT NOT NULL DEFAULT '[]',
    assignee_ids  TEXT NOT NULL DEFAULT '[]',
    creator_id    TEXT,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# messages 表 DDL（删除任务时由服务层先删除评论）
_MESSAGES_DDL = """
CREATE TABLE IF NOT EXISTS messages (
    message_id  TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    agent_id    TEXT NOT NULL,
    content     TEXT NOT NULL,
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_MESSAGES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_messages_task_ts ON messages(task_id, created_at);",
]

# subscriptions 表 DDL
_SUBSCRIPTIONS_DDL = """
CREATE TABLE IF NOT EXISTS subscriptions (
    subscription_id  TEXT PRIMARY KEY,
    agent_id         TEXT NOT NULL,
    task_id          TEXT NOT NULL,
    created_at       TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_SUBSCRIPTIONS_INDEXES = [
    # (agent, task) 唯一
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_subscriptions_agent_task "
        "ON subscriptions(agent_id, task_id);"
    ),
    "CREATE INDEX IF NOT EXISTS idx_subscriptions_task ON subscriptions(task_id);",
]

# notifications 表 DDL（source_task_id 不加外键，任务删除后通知保留）
_NOTIFICATIONS_DDL = """
CREATE TABLE IF NOT EXISTS notifications (
    notification_id  TEXT PRIMARY KEY,
    agent_id         TEXT NOT NULL,
    author_agent_id  TEXT,
    author_name      TEXT NOT NULL,
    type             TEXT NOT NULL,
    message          TEXT NOT NULL,
    source_task_id   TEXT,
    read             INTEGER NOT NULL DEFAULT 0,
    delivered        INTEGER NOT NULL DEFAULT 0,
    created_at       TEXT NOT NULL
);
"""

_NOTIFICATIONS_INDEXES = [
    (
        "CREATE INDEX IF NOT EXISTS idx_notifications_undelivered "
        "ON notifications(delivered, created_at);"
    ),
    (
        "CREATE INDEX IF NOT EXISTS idx_notifications_agent_read "
        "ON notifications(agent_id, read);"
    ),
]

# documents 表 DDL
_DOCUMENTS_DDL = """
CREATE TABLE IF NOT EXISTS documents (
    document_id  TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    content      TEXT NOT NULL,
    type         TEXT NOT NULL DEFAULT 'deliverable',
    task_id      TEXT,
    author_id    TEXT NOT NULL,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""

_DOCUMENTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_documents_task ON documents(task_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_author ON documents(author_id);",
]

# activities 表 DDL（append-only）
_ACTIVITIES_DDL = """
CREATE TABLE IF NOT EXISTS activities (
    activity_id  TEXT PRIMARY KEY,
    agent_id     TEXT,
    action       TEXT NOT NULL,
    target_type  TEXT NOT NULL,
    target_id    TEXT,
    description  TEXT NOT NULL,
    created_at   TEXT NOT NULL
);
"""

_ACTIVITIES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activities_created_at ON activities(created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_activities_target ON activities(target_type, target_id);",
]

# rules 表 DDL
_RULES_DDL = """
CREATE TABLE IF NOT EXISTS rules (
    rule_id        TEXT PRIMARY KEY,
    text           TEXT NOT NULL,
    why            TEXT NOT NULL DEFAULT '',
    scope          TEXT NOT NULL DEFAULT 'global',
    tier           TEXT NOT NULL DEFAULT 'standard',
    checkable      INTEGER NOT NULL DEFAULT 0,
    check_pattern  TEXT,
    active         INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

_RULES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_rules_scope_active ON rules(scope, active);",
]

# preflight_logs 表 DDL（append-only）
_PREFLIGHT_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS preflight_logs (
    log_id      TEXT PRIMARY KEY,
    agent_id    TEXT NOT NULL,
    task_id     TEXT,
    check_type  TEXT NOT NULL,
    passed      INTEGER NOT NULL,
    details     TEXT,
    content     TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
"""

_PREFLIGHT_LOGS_INDEXES = [
    (
        "CREATE INDEX IF NOT EXISTS idx_preflight_logs_agent "
        "ON preflight_logs(agent_id, created_at DESC);"
    ),
]

_ALL_DDL = [
    _AGENTS_DDL,
    _TASKS_DDL,
    _MESSAGES_DDL,
    _SUBSCRIPTIONS_DDL,
    _NOTIFICATIONS_DDL,
    _DOCUMENTS_DDL,
    _ACTIVITIES_DDL,
    _RULES_DDL,
    _PREFLIGHT_LOGS_DDL,
]

_ALL_INDEXES = (
    _AGENTS_INDEXES
    + _TASKS_INDEXES
    + _MESSAGES_INDEXES
    + _SUBSCRIPTIONS_INDEXES
    + _NOTIFICATIONS_INDEXES
    + _DOCUMENTS_INDEXES
    + _ACTIVITIES_INDEXES
    + _RULES_INDEXES
    + _PREFLIGHT_LOGS_INDEXES
)


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    for ddl in _ALL_DDL:
        await conn.execute(ddl)

    for idx_sql in _ALL_INDEXES:
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
