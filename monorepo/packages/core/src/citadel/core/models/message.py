"""TaskMessage -- 任务线程上的评论

创建后不可修改，只随任务删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TaskMessage(BaseModel):
    """任务评论"""

    message_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="所属任务")
    agent_id: str = Field(description="作者 agent_id")
    content: str = Field(description="评论正文")
    created_at: datetime = Field(description="创建时间")


class TaskMessageView(TaskMessage):
    """带作者显示名的评论（读取视图）"""

    author_name: str = Field(description="作者显示名")
