"""MessageService -- 评论写入与通知 fan-out

post_comment 流程（同一事务）：
1. 写入评论
2. 作者订阅该任务
3. 解析 @mention（排除作者、丢弃未登记名称）
4. 每个被提及者：订阅 + mention 通知，加入已处理集合
5. 其余订阅者（非作者、非已处理）：comment 通知
6. 一条活动记录 comment/comment

mention 通知总是先于 comment 通知写入。
"""

from datetime import UTC, datetime

import structlog
from citadel.core.config import DEFAULT_AUTHOR_NAME, DEFAULT_TASK_TITLE
from citadel.core.exceptions import AgentNotFoundError, TaskNotFoundError
from citadel.core.mentions import extract_mention_names, resolve_mentions
from citadel.core.models import NotificationType, TaskMessage
from citadel.core.store import StoreGroup, atomic
from pydantic import BaseModel, Field
from ulid import ULID

from .activity_service import record_activity
from .notify import emit_notification

log = structlog.get_logger()


class FanoutResult(BaseModel):
    """一次评论 fan-out 的结果"""

    message_id: str
    mention_notification_ids: list[str] = Field(default_factory=list)
    comment_notification_ids: list[str] = Field(default_factory=list)

    @property
    def notification_count(self) -> int:
        return len(self.mention_notification_ids) + len(self.comment_notification_ids)


class MessageService:
    """评论业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def post_comment(
        self,
        task_id: str,
        author_id: str,
        content: str,
    ) -> FanoutResult:
        """发表评论并 fan-out 通知

        Raises:
            TaskNotFoundError: 任务不存在（不写入任何记录）
            AgentNotFoundError: 作者不存在（不写入任何记录）
        """
        now = datetime.now(UTC)

        async with atomic(self._stores):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            author = await self._stores.agent_store.get_agent(author_id)
            if author is None:
                raise AgentNotFoundError(author_id)

            author_name = author.name or DEFAULT_AUTHOR_NAME
            task_title = task.title or DEFAULT_TASK_TITLE

            message = TaskMessage(
                message_id=str(ULID()),
                task_id=task_id,
                agent_id=author_id,
                content=content,
                created_at=now,
            )
            await self._stores.message_store.append_message(message)
            await self._stores.subscription_store.ensure_subscription(author_id, task_id)

            result = FanoutResult(message_id=message.message_id)
            handled: set[str] = set()

            agents = await self._stores.agent_store.list_agents()
            mentioned = resolve_mentions(
                extract_mention_names(content),
                agents,
                exclude_agent_id=author_id,
            )
            for agent in mentioned:
                await self._stores.subscription_store.ensure_subscription(
                    agent.agent_id, task_id
                )
                notification_id = await emit_notification(
                    self._stores,
                    recipient_id=agent.agent_id,
                    author_id=author_id,
                    author_name=author_name,
                    type=NotificationType.MENTION,
                    message=f"{author_name} mentioned you in: {task_title}",
                    source_task_id=task_id,
                    now=now,
                )
                result.mention_notification_ids.append(notification_id)
                handled.add(agent.agent_id)

            subscriptions = await self._stores.subscription_store.list_by_task(task_id)
            for subscription in subscriptions:
                if subscription.agent_id == author_id or subscription.agent_id in handled:
                    continue
                notification_id = await emit_notification(
                    self._stores,
                    recipient_id=subscription.agent_id,
                    author_id=author_id,
                    author_name=author_name,
                    type=NotificationType.COMMENT,
                    message=f"{author_name} commented on: {task_title}",
                    source_task_id=task_id,
                    now=now,
                )
                result.comment_notification_ids.append(notification_id)
                handled.add(subscription.agent_id)

            await record_activity(
                self._stores,
                agent_id=author_id,
                action="comment",
                target_type="comment",
                target_id=task_id,
                description=f"commented on: {task_title}",
                now=now,
            )

        log.info(
            "comment_fanned_out",
            task_id=task_id,
            author_id=author_id,
            mentions=len(result.mention_notification_ids),
            comments=len(result.comment_notification_ids),
        )
        return result
