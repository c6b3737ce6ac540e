"""NotificationService -- 通知投递状态、已读、订阅管理

delivered 只由投递守护进程通过 mark_delivered 置位。
"""

import structlog
from citadel.core.config import UNDELIVERED_PAGE_SIZE
from citadel.core.models import Notification, PendingNotification
from citadel.core.store import StoreGroup, atomic

log = structlog.get_logger()


class NotificationService:
    """通知业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def list_undelivered(
        self,
        limit: int = UNDELIVERED_PAGE_SIZE,
    ) -> list[PendingNotification]:
        """未投递通知，最旧优先，limit 上限为 UNDELIVERED_PAGE_SIZE"""
        limit = max(1, min(limit, UNDELIVERED_PAGE_SIZE))
        return await self._stores.notification_store.list_undelivered(limit)

    async def mark_delivered(self, notification_id: str) -> bool:
        async with atomic(self._stores):
            found = await self._stores.notification_store.mark_delivered(notification_id)
        if found:
            log.debug("notification_marked_delivered", notification_id=notification_id)
        return found

    async def mark_read(self, notification_id: str) -> bool:
        async with atomic(self._stores):
            return await self._stores.notification_store.mark_read(notification_id)

    async def take_unread(self, agent_id: str) -> list[Notification]:
        """取出某 agent 的未读通知并全部标记已读"""
        async with atomic(self._stores):
            unread = await self._stores.notification_store.list_for_agent(
                agent_id, unread_only=True
            )
            for notification in unread:
                await self._stores.notification_store.mark_read(
                    notification.notification_id
                )
        return unread

    async def subscribe(self, agent_id: str, task_id: str) -> str:
        async with atomic(self._stores):
            return await self._stores.subscription_store.ensure_subscription(
                agent_id, task_id
            )

    async def unsubscribe(self, agent_id: str, task_id: str) -> bool:
        async with atomic(self._stores):
            return await self._stores.subscription_store.remove_subscription(
                agent_id, task_id
            )
