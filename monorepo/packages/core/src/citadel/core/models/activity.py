"""Activity Domain Model -- append-only 审计流"""

from datetime import datetime

from pydantic import BaseModel, Field


class Activity(BaseModel):
    """一条审计记录"""

    activity_id: str = Field(description="唯一标识，ULID 格式")
    agent_id: str | None = Field(default=None, description="操作者")
    action: str = Field(description="动作，如 create / status / assign / comment")
    target_type: str = Field(description="目标类型，如 task / comment / doc")
    target_id: str | None = Field(default=None, description="目标 ID")
    description: str = Field(description="可读描述")
    created_at: datetime = Field(description="创建时间")
