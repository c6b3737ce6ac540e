"""TaskStore SQLite 实现

tags 与 assignee_ids 以 JSON 数组存储；负责人查询通过 json_each 展开。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import PRIORITY_ORDER, TaskStatus
from ..models.task import Task


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, title, description, status, priority,
                               tags, assignee_ids, creator_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.title,
                task.description,
                task.status.value,
                task.priority.value,
                json.dumps(task.tags, ensure_ascii=False),
                json.dumps(task.assignee_ids),
                task.creator_id,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def save_task(self, task: Task) -> None:
        """整行覆盖更新（read-then-patch 后写回）"""
        await self._conn.execute(
            """
            UPDATE tasks
            SET title = ?, description = ?, status = ?, priority = ?,
                tags = ?, assignee_ids = ?, updated_at = ?
            WHERE task_id = ?
            """,
            (
                task.title,
                task.description,
                task.status.value,
                task.priority.value,
                json.dumps(task.tags, ensure_ascii=False),
                json.dumps(task.assignee_ids),
                task.updated_at.isoformat(),
                task.task_id,
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        """查询任务列表，支持按存储状态筛选，按 created_at 倒序"""
        if status:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks WHERE status = ? ORDER BY created_at DESC",
                (status,),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks ORDER BY created_at DESC"
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_inbox(self) -> list[Task]:
        """未分配的 inbox 任务，按优先级 urgent -> low，同级按创建时间"""
        cursor = await self._conn.execute(
            """
            SELECT * FROM tasks
            WHERE status = ? AND json_array_length(assignee_ids) = 0
            ORDER BY created_at
            """,
            (TaskStatus.INBOX.value,),
        )
        rows = await cursor.fetchall()
        tasks = [self._row_to_task(row) for row in rows]
        return sorted(tasks, key=lambda t: PRIORITY_ORDER[t.priority])

    async def list_for_agent(self, agent_id: str, include_done: bool = False) -> list[Task]:
        """查询分配给某 agent 的任务，默认排除 done"""
        sql = """
            SELECT tasks.* FROM tasks, json_each(tasks.assignee_ids)
            WHERE json_each.value = ?
        """
        params: tuple = (agent_id,)
        if not include_done:
            sql += " AND tasks.status != ?"
            params = (agent_id, TaskStatus.DONE.value)
        sql += " ORDER BY tasks.updated_at DESC"
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def delete_task(self, task_id: str) -> None:
        await self._conn.execute("DELETE FROM tasks WHERE task_id = ?", (task_id,))

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            status=row[3],
            priority=row[4],
            tags=json.loads(row[5]),
            assignee_ids=json.loads(row[6]),
            creator_id=row[7],
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )
