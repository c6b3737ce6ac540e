"""DocumentService -- 文档写入与查询"""

from datetime import UTC, datetime

import structlog
from citadel.core.models import Document, DocumentType
from citadel.core.store import StoreGroup, atomic
from ulid import ULID

from .activity_service import record_activity

log = structlog.get_logger()


class DocumentService:
    """文档业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_document(
        self,
        author_id: str,
        title: str,
        content: str,
        type: DocumentType = DocumentType.DELIVERABLE,
        task_id: str | None = None,
    ) -> Document:
        """写入文档 + 活动记录 create/doc"""
        now = datetime.now(UTC)
        document = Document(
            document_id=str(ULID()),
            title=title,
            content=content,
            type=type,
            task_id=task_id,
            author_id=author_id,
            created_at=now,
            updated_at=now,
        )
        async with atomic(self._stores):
            await self._stores.document_store.create_document(document)
            await record_activity(
                self._stores,
                agent_id=author_id,
                action="create",
                target_type="doc",
                target_id=document.document_id,
                description=f"created document: {title}",
                now=now,
            )

        log.info(
            "document_created",
            document_id=document.document_id,
            type=type.value,
            task_id=task_id,
            length=len(content),
        )
        return document

    async def list_documents(
        self,
        author_id: str | None = None,
        task_id: str | None = None,
    ) -> list[Document]:
        return await self._stores.document_store.list_documents(author_id, task_id)
