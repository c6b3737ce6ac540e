"""全局 pytest 配置 -- 临时 SQLite 数据库与 Store 实例组 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest_asyncio
from citadel.core.models import Agent, AgentRole, AgentStatus
from citadel.core.store import StoreGroup, atomic, create_store_group
from ulid import ULID


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 Store 实例组"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def make_agent(store_group: StoreGroup):
    """登记 agent 的工厂 fixture"""

    async def _make(
        name: str,
        role: AgentRole = AgentRole.BUILDER,
        *,
        status: AgentStatus = AgentStatus.IDLE,
        session_key: str | None = "",
    ) -> Agent:
        agent = Agent(
            agent_id=str(ULID()),
            name=name,
            role=role,
            status=status,
            # "" 表示按名字生成默认会话键，None 表示没有会话
            session_key=f"agent:{name.lower()}:main" if session_key == "" else session_key,
            last_active=datetime.now(UTC),
        )
        async with atomic(store_group):
            await store_group.agent_store.create_agent(agent)
        return agent

    return _make
