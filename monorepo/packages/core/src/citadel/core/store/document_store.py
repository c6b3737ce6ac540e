"""DocumentStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.document import Document


class SqliteDocumentStore:
    """DocumentStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_document(self, document: Document) -> None:
        await self._conn.execute(
            """
            INSERT INTO documents (document_id, title, content, type, task_id,
                                   author_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                document.document_id,
                document.title,
                document.content,
                document.type.value,
                document.task_id,
                document.author_id,
                document.created_at.isoformat(),
                document.updated_at.isoformat(),
            ),
        )

    async def get_document(self, document_id: str) -> Document | None:
        cursor = await self._conn.execute(
            "SELECT * FROM documents WHERE document_id = ?",
            (document_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_document(row) if row else None

    async def list_documents(
        self,
        author_id: str | None = None,
        task_id: str | None = None,
        limit: int = 50,
    ) -> list[Document]:
        """按作者或任务筛选，最新优先"""
        clauses: list[str] = []
        params: list = []
        if author_id:
            clauses.append("author_id = ?")
            params.append(author_id)
        if task_id:
            clauses.append("task_id = ?")
            params.append(task_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM documents {where} ORDER BY created_at DESC LIMIT ?",
            (*params, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_document(row) for row in rows]

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        return Document(
            document_id=row[0],
            title=row[1],
            content=row[2],
            type=row[3],
            task_id=row[4],
            author_id=row[5],
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )
