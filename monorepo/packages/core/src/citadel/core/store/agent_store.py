"""AgentStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.agent import Agent


class SqliteAgentStore:
    """AgentStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_agent(self, agent: Agent) -> None:
        """登记 agent（name 冲突时由唯一索引抛出 IntegrityError）"""
        await self._conn.execute(
            """
            INSERT INTO agents (agent_id, name, role, status, level, session_key,
                                current_task, avatar_emoji, last_active)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                agent.agent_id,
                agent.name,
                agent.role.value,
                agent.status.value,
                agent.level.value,
                agent.session_key,
                agent.current_task,
                agent.avatar_emoji,
                agent.last_active.isoformat(),
            ),
        )

    async def get_agent(self, agent_id: str) -> Agent | None:
        cursor = await self._conn.execute(
            "SELECT * FROM agents WHERE agent_id = ?",
            (agent_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_agent(row) if row else None

    async def get_by_name(self, name: str) -> Agent | None:
        """按显示名查询（大小写不敏感）"""
        cursor = await self._conn.execute(
            "SELECT * FROM agents WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        )
        row = await cursor.fetchone()
        return self._row_to_agent(row) if row else None

    async def get_by_session_key(self, session_key: str) -> Agent | None:
        cursor = await self._conn.execute(
            "SELECT * FROM agents WHERE session_key = ?",
            (session_key,),
        )
        row = await cursor.fetchone()
        return self._row_to_agent(row) if row else None

    async def list_agents(self, status: str | None = None) -> list[Agent]:
        """查询 agent 列表，支持按状态筛选，按名称排序"""
        if status:
            cursor = await self._conn.execute(
                "SELECT * FROM agents WHERE status = ? ORDER BY name",
                (status,),
            )
        else:
            cursor = await self._conn.execute("SELECT * FROM agents ORDER BY name")
        rows = await cursor.fetchall()
        return [self._row_to_agent(row) for row in rows]

    async def list_by_role(self, role: str) -> list[Agent]:
        cursor = await self._conn.execute(
            "SELECT * FROM agents WHERE role = ? ORDER BY rowid",
            (role,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_agent(row) for row in rows]

    async def update_status(
        self,
        agent_id: str,
        status: str,
        current_task: str | None,
        last_active: datetime,
    ) -> None:
        await self._conn.execute(
            """
            UPDATE agents
            SET status = ?, current_task = ?, last_active = ?
            WHERE agent_id = ?
            """,
            (status, current_task, last_active.isoformat(), agent_id),
        )

    async def count_agents(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM agents")
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_agent(row: aiosqlite.Row) -> Agent:
        return Agent(
            agent_id=row[0],
            name=row[1],
            role=row[2],
            status=row[3],
            level=row[4],
            session_key=row[5],
            current_task=row[6],
            avatar_emoji=row[7],
            last_active=datetime.fromisoformat(row[8]),
        )
