"""Document Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import DocumentType


class Document(BaseModel):
    """agent 产出的文档（交付物 / 调研 / 方案 / 报告）"""

    document_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="标题")
    content: str = Field(description="正文（markdown）")
    type: DocumentType = Field(default=DocumentType.DELIVERABLE, description="文档类型")
    task_id: str | None = Field(default=None, description="关联任务")
    author_id: str = Field(description="作者 agent_id")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
