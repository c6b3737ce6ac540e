"""通知与订阅路由

GET  /api/notifications/undelivered: 未投递通知（投递守护进程轮询）
POST /api/notifications/{id}/delivered: 标记已投递
POST /api/notifications/{id}/read: 标记已读
GET  /api/my-notifications: 某 agent 的未读通知（读取即标记已读）
POST /api/subscribe / /api/unsubscribe: 显式订阅 / 取消订阅
"""

from citadel.core.config import UNDELIVERED_PAGE_SIZE
from citadel.core.exceptions import TaskNotFoundError
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..deps import get_store_group, require_api_key, resolve_agent
from ..errors import RequestError
from ..schemas import AGENT_NAME, TASK_ID
from ..services.notification_service import NotificationService

router = APIRouter(dependencies=[Depends(require_api_key)])


class SubscriptionRequest(BaseModel):
    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    task_id: str = Field(validation_alias=TASK_ID)


def _not_found(notification_id: str) -> RequestError:
    return RequestError(
        404,
        "NOTIFICATION_NOT_FOUND",
        f"Notification with id {notification_id} does not exist",
    )


@router.get("/api/notifications/undelivered")
async def list_undelivered(
    limit: int = Query(default=UNDELIVERED_PAGE_SIZE, ge=1, le=UNDELIVERED_PAGE_SIZE),
    store_group=Depends(get_store_group),
):
    """未投递通知，最旧优先，附带接收者名称 / 会话键 / 角色"""
    pending = await NotificationService(store_group).list_undelivered(limit)
    return {"notifications": [n.model_dump(mode="json") for n in pending]}


@router.post("/api/notifications/{notification_id}/delivered")
async def mark_delivered(
    notification_id: str,
    store_group=Depends(get_store_group),
):
    if not await NotificationService(store_group).mark_delivered(notification_id):
        raise _not_found(notification_id)
    return {"ok": True}


@router.post("/api/notifications/{notification_id}/read")
async def mark_read(
    notification_id: str,
    store_group=Depends(get_store_group),
):
    if not await NotificationService(store_group).mark_read(notification_id):
        raise _not_found(notification_id)
    return {"ok": True}


@router.get("/api/my-notifications")
async def my_notifications(
    agent: str = Query(description="agent 显示名"),
    store_group=Depends(get_store_group),
):
    resolved = await resolve_agent(store_group, agent)
    unread = await NotificationService(store_group).take_unread(resolved.agent_id)
    return {
        "agent": resolved.name,
        "notifications": [n.model_dump(mode="json") for n in unread],
    }


@router.post("/api/subscribe")
async def subscribe(
    body: SubscriptionRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    if await store_group.task_store.get_task(body.task_id) is None:
        raise TaskNotFoundError(body.task_id)
    subscription_id = await NotificationService(store_group).subscribe(
        agent.agent_id, body.task_id
    )
    return {"ok": True, "subscription_id": subscription_id}


@router.post("/api/unsubscribe")
async def unsubscribe(
    body: SubscriptionRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    removed = await NotificationService(store_group).unsubscribe(
        agent.agent_id, body.task_id
    )
    return {"ok": True, "removed": removed}
