"""ActivityService -- 审计流写入与查询"""

from datetime import UTC, datetime

from citadel.core.config import ACTIVITY_LIMIT
from citadel.core.models import Activity
from citadel.core.store import StoreGroup, atomic
from ulid import ULID


async def record_activity(
    stores: StoreGroup,
    *,
    agent_id: str | None,
    action: str,
    target_type: str,
    target_id: str | None,
    description: str,
    now: datetime | None = None,
) -> str:
    """追加一条活动记录（调用方负责事务）

    Returns:
        activity_id
    """
    activity = Activity(
        activity_id=str(ULID()),
        agent_id=agent_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        description=description,
        created_at=now or datetime.now(UTC),
    )
    await stores.activity_store.append_activity(activity)
    return activity.activity_id


class ActivityService:
    """活动流业务服务（供外部 agent 直接记录活动）"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def log_activity(
        self,
        agent_id: str,
        action: str,
        target_type: str,
        description: str,
        target_id: str | None = None,
    ) -> str:
        async with atomic(self._stores):
            return await record_activity(
                self._stores,
                agent_id=agent_id,
                action=action,
                target_type=target_type,
                target_id=target_id,
                description=description,
            )

    async def list_recent(self, target_type: str | None = None) -> list[Activity]:
        return await self._stores.activity_store.list_recent(
            ACTIVITY_LIMIT,
            target_type=target_type,
        )
