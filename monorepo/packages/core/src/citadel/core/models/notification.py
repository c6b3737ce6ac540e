"""Notification Domain Model

通知只由 fan-out 引擎创建；delivered 仅由投递守护进程置位，
read 仅由 UI / my-notifications 置位。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import AgentRole, NotificationType


class Notification(BaseModel):
    """投递给某个 agent 的一条通知"""

    notification_id: str = Field(description="唯一标识，ULID 格式")
    agent_id: str = Field(description="接收者 agent_id")
    author_agent_id: str | None = Field(default=None, description="作者 agent_id")
    author_name: str = Field(description="作者显示名（写入时固化）")
    type: NotificationType = Field(description="通知类型")
    message: str = Field(description="通知文本")
    source_task_id: str | None = Field(default=None, description="来源任务")
    read: bool = Field(default=False, description="是否已读")
    delivered: bool = Field(default=False, description="是否已投递到会话")
    created_at: datetime = Field(description="创建时间")


class PendingNotification(Notification):
    """待投递通知 -- 附带接收者名称、会话键与角色，供守护进程使用"""

    agent_name: str = Field(description="接收者显示名")
    agent_session_key: str | None = Field(default=None, description="接收者会话键")
    agent_role: AgentRole | None = Field(default=None, description="接收者角色")
