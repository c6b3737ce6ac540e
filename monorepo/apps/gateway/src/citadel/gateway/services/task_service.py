"""TaskService -- 任务创建/状态/分配/更新/删除业务逻辑

每个写操作在单个事务内完成：任务写入 + 订阅 + 通知 + 活动记录。
引用不存在的任务时状态/分配/更新操作静默返回 None（不抛异常、无副作用）。

任务状态不做流转校验，任意状态可跳到任意状态。
"""

from datetime import UTC, datetime

import structlog
from citadel.core.config import ASSIGNMENT_PREFIX, SYSTEM_AUTHOR_NAME
from citadel.core.models import (
    NotificationType,
    Task,
    TaskMessageView,
    TaskPriority,
    TaskStatus,
)
from citadel.core.store import StoreGroup, atomic
from ulid import ULID

from .activity_service import record_activity
from .notify import emit_notification

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        tags: list[str] | None = None,
        assignee_ids: list[str] | None = None,
        creator_id: str | None = None,
    ) -> str:
        """创建任务

        副作用（同一事务）：
        1. 活动记录 create/task
        2. 创建者与每个负责人订阅该任务
        3. 每个负责人收到一条分配 mention 通知

        Args:
            title: 任务标题
            description: 任务描述
            priority: 优先级
            tags: 标签
            assignee_ids: 负责人 agent_id（重复值合并，未登记的丢弃）
            creator_id: 创建者 agent_id

        Returns:
            task_id
        """
        now = datetime.now(UTC)
        task_id = str(ULID())

        async with atomic(self._stores):
            valid_assignees = await self._existing_agent_ids(assignee_ids or [])
            task = Task(
                task_id=task_id,
                title=title,
                description=description,
                status=TaskStatus.INBOX,
                priority=priority,
                tags=tags or [],
                assignee_ids=valid_assignees,
                creator_id=creator_id,
                created_at=now,
                updated_at=now,
            )
            await self._stores.task_store.create_task(task)

            await record_activity(
                self._stores,
                agent_id=creator_id,
                action="create",
                target_type="task",
                target_id=task_id,
                description=f"created task: {title}",
                now=now,
            )

            if creator_id:
                await self._stores.subscription_store.ensure_subscription(
                    creator_id, task_id
                )

            author_name = await self._author_name(creator_id)
            for agent_id in task.assignee_ids:
                await self._stores.subscription_store.ensure_subscription(
                    agent_id, task_id
                )
                await self._emit_assignment(task, agent_id, creator_id, author_name, now)

        log.info(
            "task_created",
            task_id=task_id,
            assignee_count=len(task.assignee_ids),
            creator_id=creator_id,
        )
        return task_id

    async def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        actor_id: str | None = None,
    ) -> Task | None:
        """更新任务状态（不校验流转），不存在的任务静默忽略"""
        now = datetime.now(UTC)
        async with atomic(self._stores):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                log.debug("task_status_update_skipped", task_id=task_id)
                return None

            updated = task.model_copy(update={"status": status, "updated_at": now})
            await self._stores.task_store.save_task(updated)
            await record_activity(
                self._stores,
                agent_id=actor_id,
                action="status",
                target_type="status",
                target_id=task_id,
                description=f"moved task: {task.title} → {status.value}",
                now=now,
            )

        log.info(
            "task_status_updated",
            task_id=task_id,
            from_status=task.status.value,
            to_status=status.value,
        )
        return updated

    async def assign(
        self,
        task_id: str,
        agent_id: str,
        actor_id: str | None = None,
    ) -> Task | None:
        """分配负责人（幂等追加）

        新加入的负责人收到分配通知；重复分配只确保订阅存在。
        """
        now = datetime.now(UTC)
        async with atomic(self._stores):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                log.debug("task_assign_skipped", task_id=task_id)
                return None

            newly_added = agent_id not in task.assignee_ids
            if newly_added:
                task = task.model_copy(
                    update={
                        "assignee_ids": [*task.assignee_ids, agent_id],
                        "updated_at": now,
                    }
                )
                await self._stores.task_store.save_task(task)

            await self._stores.subscription_store.ensure_subscription(agent_id, task_id)
            await record_activity(
                self._stores,
                agent_id=actor_id,
                action="assign",
                target_type="task",
                target_id=task_id,
                description=f"assigned to: {task.title}",
                now=now,
            )
            if newly_added:
                author_name = await self._author_name(actor_id)
                await self._emit_assignment(task, agent_id, actor_id, author_name, now)

        return task

    async def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        assignee_ids: list[str] | None = None,
        priority: TaskPriority | None = None,
        actor_id: str | None = None,
    ) -> Task | None:
        """按字段局部更新任务

        负责人集合变化时，仅对新增的负责人：分配通知 + 活动记录 + 订阅。
        通知使用更新后的标题。
        """
        now = datetime.now(UTC)
        async with atomic(self._stores):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                log.debug("task_update_skipped", task_id=task_id)
                return None

            patch: dict = {"updated_at": now}
            if title is not None:
                patch["title"] = title
            if description is not None:
                patch["description"] = description
            if tags is not None:
                patch["tags"] = tags
            if priority is not None:
                patch["priority"] = priority

            new_assignees: list[str] = []
            if assignee_ids is not None:
                valid = await self._existing_agent_ids(assignee_ids)
                new_assignees = [a for a in valid if a not in task.assignee_ids]
                patch["assignee_ids"] = valid

            updated = task.model_copy(update=patch)
            await self._stores.task_store.save_task(updated)

            if new_assignees:
                author_name = await self._author_name(actor_id)
                for agent_id in new_assignees:
                    await self._emit_assignment(updated, agent_id, actor_id, author_name, now)
                    await record_activity(
                        self._stores,
                        agent_id=actor_id,
                        action="assign",
                        target_type="task",
                        target_id=task_id,
                        description=f"assigned to: {updated.title}",
                        now=now,
                    )
                    await self._stores.subscription_store.ensure_subscription(
                        agent_id, task_id
                    )

        log.info("task_updated", task_id=task_id, new_assignees=len(new_assignees))
        return updated

    async def remove_task(self, task_id: str) -> bool:
        """删除任务及其评论、订阅（通知与活动保留）"""
        async with atomic(self._stores):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                return False
            messages = await self._stores.message_store.delete_for_task(task_id)
            subscriptions = await self._stores.subscription_store.delete_for_task(task_id)
            await self._stores.task_store.delete_task(task_id)

        log.info(
            "task_removed",
            task_id=task_id,
            messages_deleted=messages,
            subscriptions_deleted=subscriptions,
        )
        return True

    async def get_task(self, task_id: str) -> Task | None:
        return await self._stores.task_store.get_task(task_id)

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        return await self._stores.task_store.list_tasks(status)

    async def list_inbox(self) -> list[Task]:
        return await self._stores.task_store.list_inbox()

    async def list_for_agent(self, agent_id: str) -> list[Task]:
        return await self._stores.task_store.list_for_agent(agent_id)

    async def list_messages(
        self,
        task_id: str,
        limit: int | None = None,
    ) -> list[TaskMessageView]:
        """任务评论；指定 limit 时返回最近 limit 条（时间正序）"""
        if limit is not None:
            return await self._stores.message_store.list_recent(task_id, limit)
        return await self._stores.message_store.list_for_task(task_id)

    async def _emit_assignment(
        self,
        task: Task,
        agent_id: str,
        author_id: str | None,
        author_name: str,
        now: datetime,
    ) -> str:
        return await emit_notification(
            self._stores,
            recipient_id=agent_id,
            author_id=author_id,
            author_name=author_name,
            type=NotificationType.MENTION,
            message=f"{ASSIGNMENT_PREFIX}{task.title}",
            source_task_id=task.task_id,
            now=now,
        )

    async def _author_name(self, agent_id: str | None) -> str:
        if agent_id is None:
            return SYSTEM_AUTHOR_NAME
        agent = await self._stores.agent_store.get_agent(agent_id)
        return agent.name if agent else SYSTEM_AUTHOR_NAME

    async def _existing_agent_ids(self, agent_ids: list[str]) -> list[str]:
        """有序去重，丢弃未登记的 agent_id"""
        valid: list[str] = []
        for agent_id in dict.fromkeys(agent_ids):
            if await self._stores.agent_store.get_agent(agent_id) is None:
                log.warning("unknown_assignee_dropped", agent_id=agent_id)
                continue
            valid.append(agent_id)
        return valid
