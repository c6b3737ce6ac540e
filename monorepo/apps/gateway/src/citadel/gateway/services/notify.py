"""通知写入辅助 -- fan-out 引擎（任务服务与评论服务）共用

通知只从这里创建。
"""

from datetime import datetime

import structlog
from citadel.core.models import Notification, NotificationType
from citadel.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


async def emit_notification(
    stores: StoreGroup,
    *,
    recipient_id: str,
    author_id: str | None,
    author_name: str,
    type: NotificationType,
    message: str,
    source_task_id: str | None,
    now: datetime,
) -> str:
    """写入一条未读、未投递的通知（调用方负责事务）

    Returns:
        notification_id
    """
    notification = Notification(
        notification_id=str(ULID()),
        agent_id=recipient_id,
        author_agent_id=author_id,
        author_name=author_name,
        type=type,
        message=message,
        source_task_id=source_task_id,
        created_at=now,
    )
    await stores.notification_store.create_notification(notification)
    log.debug(
        "notification_emitted",
        notification_id=notification.notification_id,
        recipient_id=recipient_id,
        type=type.value,
    )
    return notification.notification_id
