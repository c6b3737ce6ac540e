"""Agent Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import AgentLevel, AgentRole, AgentStatus, RuleScope, scope_for_role


class Agent(BaseModel):
    """Agent 数据模型 -- 一个有独立会话的自治 agent"""

    agent_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="显示名，大小写不敏感唯一，用于 @mention")
    role: AgentRole = Field(description="角色，决定 preflight 规则作用域")
    status: AgentStatus = Field(default=AgentStatus.IDLE, description="工作状态")
    level: AgentLevel = Field(default=AgentLevel.SPECIALIST, description="级别")
    session_key: str | None = Field(default=None, description="会话网关中的会话键")
    current_task: str | None = Field(default=None, description="当前工作描述")
    avatar_emoji: str = Field(default="", description="头像 emoji")
    last_active: datetime = Field(description="最近活跃时间")

    @property
    def rule_scope(self) -> RuleScope:
        return scope_for_role(self.role)
