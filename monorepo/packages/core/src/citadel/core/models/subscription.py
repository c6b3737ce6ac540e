"""Subscription Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field


class Subscription(BaseModel):
    """(agent, task) 订阅关系，每对唯一"""

    subscription_id: str = Field(description="唯一标识，ULID 格式")
    agent_id: str = Field(description="订阅者")
    task_id: str = Field(description="被订阅任务")
    created_at: datetime = Field(description="创建时间")
