"""AgentService -- agent 登记、心跳、查询"""

from datetime import UTC, datetime

import structlog
from citadel.core.exceptions import AgentNotFoundError
from citadel.core.models import Agent, AgentLevel, AgentRole, AgentStatus
from citadel.core.store import StoreGroup, atomic
from ulid import ULID

from .activity_service import record_activity

log = structlog.get_logger()

# 心跳上报状态 -> AgentStatus
STATUS_MAP: dict[str, AgentStatus] = {
    "online": AgentStatus.WORKING,
    "active": AgentStatus.WORKING,
    "offline": AgentStatus.IDLE,
    "idle": AgentStatus.IDLE,
    "working": AgentStatus.WORKING,
    "blocked": AgentStatus.BLOCKED,
}


class AgentService:
    """agent 业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def register(
        self,
        name: str,
        role: AgentRole,
        *,
        level: AgentLevel = AgentLevel.SPECIALIST,
        session_key: str | None = None,
        avatar_emoji: str = "",
    ) -> tuple[Agent, bool]:
        """登记 agent，同名（大小写不敏感）已存在时直接返回

        Returns:
            (agent, created) -- created=False 表示名称已登记
        """
        async with atomic(self._stores):
            existing = await self._stores.agent_store.get_by_name(name)
            if existing is not None:
                return existing, False

            agent = Agent(
                agent_id=str(ULID()),
                name=name.strip(),
                role=role,
                level=level,
                session_key=session_key,
                avatar_emoji=avatar_emoji,
                last_active=datetime.now(UTC),
            )
            await self._stores.agent_store.create_agent(agent)

        log.info("agent_registered", agent_id=agent.agent_id, name=agent.name)
        return agent, True

    async def heartbeat(
        self,
        reported_status: str,
        *,
        session_key: str | None = None,
        name: str | None = None,
        current_task: str | None = None,
    ) -> Agent:
        """心跳：按会话键或名称定位 agent，更新状态与活跃时间

        状态变化时写一条活动记录。

        Raises:
            AgentNotFoundError: 无法定位 agent
            ValueError: 上报的状态无法识别
        """
        status = STATUS_MAP.get(reported_status.lower())
        if status is None:
            raise ValueError(f"Unknown heartbeat status: {reported_status}")

        now = datetime.now(UTC)
        async with atomic(self._stores):
            agent = None
            if session_key:
                agent = await self._stores.agent_store.get_by_session_key(session_key)
            if agent is None and name:
                agent = await self._stores.agent_store.get_by_name(name)
            if agent is None:
                raise AgentNotFoundError(session_key or name or "")

            await self._stores.agent_store.update_status(
                agent.agent_id, status.value, current_task, now
            )
            if agent.status != status:
                await record_activity(
                    self._stores,
                    agent_id=agent.agent_id,
                    action="status",
                    target_type="agent",
                    target_id=agent.agent_id,
                    description=f"is now {status.value}",
                    now=now,
                )

        if agent.status != status:
            log.info(
                "agent_status_changed",
                agent_id=agent.agent_id,
                from_status=agent.status.value,
                to_status=status.value,
            )
        return agent.model_copy(
            update={"status": status, "current_task": current_task, "last_active": now}
        )

    async def list_agents(
        self,
        status: str | None = None,
        role: str | None = None,
    ) -> list[Agent]:
        if role:
            agents = await self._stores.agent_store.list_by_role(role)
            return [a for a in agents if status is None or a.status == status]
        return await self._stores.agent_store.list_agents(status)
