"""Store Protocol 接口定义

定义 fan-out 与投递链路依赖的 TaskStore、SubscriptionStore、NotificationStore 抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.notification import Notification, PendingNotification
from ..models.subscription import Subscription
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def save_task(self, task: Task) -> None:
        """整行覆盖更新"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        """查询任务列表，支持按状态筛选"""
        ...

    async def list_inbox(self) -> list[Task]:
        """未分配的 inbox 任务，按优先级排序"""
        ...

    async def list_for_agent(self, agent_id: str, include_done: bool = False) -> list[Task]:
        """分配给某 agent 的任务"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务行（评论与订阅需由调用方先行删除）"""
        ...


class SubscriptionStore(Protocol):
    """Subscription 存储接口

    ensure_subscription 是唯一的插入路径，对同一 (agent, task) 幂等。
    """

    async def ensure_subscription(self, agent_id: str, task_id: str) -> str:
        """确保订阅存在，返回 subscription_id"""
        ...

    async def remove_subscription(self, agent_id: str, task_id: str) -> bool:
        """取消订阅"""
        ...

    async def list_by_task(self, task_id: str) -> list[Subscription]:
        """任务的全部订阅"""
        ...

    async def list_by_agent(self, agent_id: str) -> list[Subscription]:
        """agent 的全部订阅"""
        ...

    async def delete_for_task(self, task_id: str) -> int:
        """删除任务的全部订阅，返回删除行数"""
        ...


class NotificationStore(Protocol):
    """Notification 存储接口"""

    async def create_notification(self, notification: Notification) -> None:
        """写入通知（仅 fan-out 引擎调用）"""
        ...

    async def get_notification(self, notification_id: str) -> Notification | None:
        ...

    async def list_undelivered(self, limit: int) -> list[PendingNotification]:
        """未投递通知，最旧优先"""
        ...

    async def list_for_agent(
        self,
        agent_id: str,
        unread_only: bool = False,
    ) -> list[Notification]:
        """某 agent 的通知，最新优先"""
        ...

    async def mark_delivered(self, notification_id: str) -> bool:
        """标记已投递（仅投递守护进程调用）"""
        ...

    async def mark_read(self, notification_id: str) -> bool:
        """标记已读"""
        ...
