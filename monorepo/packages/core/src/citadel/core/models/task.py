"""Task Domain Model

assignee_ids 是有序集合：追加时去重，保持首次加入顺序。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .enums import TaskPriority, TaskStatus, effective_status


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.INBOX, description="存储状态")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    tags: list[str] = Field(default_factory=list, description="标签")
    assignee_ids: list[str] = Field(default_factory=list, description="负责人 agent_id 列表")
    creator_id: str | None = Field(default=None, description="创建者 agent_id")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("assignee_ids")
    @classmethod
    def _dedupe_assignees(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @property
    def display_status(self) -> TaskStatus:
        """派生展示状态（inbox + 有负责人 => assigned）"""
        return effective_status(self.status, len(self.assignee_ids))
