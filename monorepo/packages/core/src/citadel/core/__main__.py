"""CLI 入口模块 -- python -m citadel.core <command>

支持的命令：
  init-db      创建数据库表结构
  seed-agents  登记默认 agent 编队（仅在 agents 表为空时）
"""

import asyncio
import sys
from datetime import UTC, datetime

from ulid import ULID

from .config import get_db_path
from .models import Agent, AgentLevel, AgentRole, AgentStatus

# 默认编队：(name, role, session id, level, status, emoji)
DEFAULT_ROSTER: list[tuple[str, AgentRole, str, AgentLevel, AgentStatus, str]] = [
    ("Buddy", AgentRole.COORDINATOR, "alpha", AgentLevel.LEAD, AgentStatus.IDLE, "🧭"),
    ("Katy", AgentRole.GROWTH, "delta", AgentLevel.SPECIALIST, AgentStatus.IDLE, "📣"),
    ("Burry", AgentRole.TRADING, "bravo", AgentLevel.SPECIALIST, AgentStatus.IDLE, "📈"),
    ("Elon", AgentRole.BUILDER, "gamma", AgentLevel.SPECIALIST, AgentStatus.IDLE, "🛠️"),
    ("Mike", AgentRole.SECURITY, "omega", AgentLevel.SPECIALIST, AgentStatus.BLOCKED, "🛡️"),
    ("Jerry", AgentRole.JOBS, "sigma", AgentLevel.SPECIALIST, AgentStatus.IDLE, "💼"),
]

_COMMANDS = {
    "init-db": "创建数据库表结构",
    "seed-agents": "登记默认 agent 编队",
}


def _usage() -> None:
    print("用法: python -m citadel.core <command>")
    print("命令:")
    for name, help_text in _COMMANDS.items():
        print(f"  {name:<12} {help_text}")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "seed-agents":
        asyncio.run(seed_agents())
    else:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(_COMMANDS)}")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库并初始化表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def seed_agents() -> int:
    """登记默认编队，已有 agent 时跳过

    Returns:
        新登记的 agent 数量
    """
    from .store import atomic, create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)

    try:
        if await store_group.agent_store.count_agents() > 0:
            print("agents 表非空，跳过")
            return 0

        now = datetime.now(UTC)
        async with atomic(store_group):
            for name, role, session_id, level, status, emoji in DEFAULT_ROSTER:
                await store_group.agent_store.create_agent(
                    Agent(
                        agent_id=str(ULID()),
                        name=name,
                        role=role,
                        status=status,
                        level=level,
                        session_key=f"agent:{session_id}:main",
                        avatar_emoji=emoji,
                        last_active=now,
                    )
                )
        print(f"已登记 {len(DEFAULT_ROSTER)} 个 agent")
        return len(DEFAULT_ROSTER)
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
