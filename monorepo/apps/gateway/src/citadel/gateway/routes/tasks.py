"""任务路由

POST   /api/task: 创建任务（负责人按名称指定）
POST   /api/task/status: 更新任务状态
POST   /api/task/assign: 分配负责人
GET    /api/tasks: 任务列表，支持 status 筛选
GET    /api/tasks/inbox: 未分配的 inbox 任务
GET    /api/tasks/{task_id}: 任务详情
PATCH  /api/tasks/{task_id}: 局部更新
DELETE /api/tasks/{task_id}: 删除任务
GET    /api/tasks/{task_id}/messages: 任务评论
GET    /api/my-tasks: 某 agent 的未完成任务
"""

import structlog
from citadel.core.exceptions import TaskNotFoundError
from citadel.core.models import TaskPriority, TaskStatus
from citadel.core.store import StoreGroup
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, require_api_key, resolve_agent
from ..schemas import AGENT_NAME, ASSIGNEE_NAMES, CREATOR_NAME, TASK_ID, task_payload
from ..services.task_service import TaskService

log = structlog.get_logger()

router = APIRouter(dependencies=[Depends(require_api_key)])


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    tags: list[str] = Field(default_factory=list, description="标签")
    assignee_names: list[str] = Field(
        default_factory=list,
        validation_alias=ASSIGNEE_NAMES,
        description="负责人显示名",
    )
    creator_name: str | None = Field(
        default=None,
        validation_alias=CREATOR_NAME,
        description="创建者显示名",
    )


class UpdateStatusRequest(BaseModel):
    """更新状态请求体"""

    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    task_id: str = Field(validation_alias=TASK_ID)
    status: TaskStatus


class AssignRequest(BaseModel):
    """分配请求体"""

    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    task_id: str = Field(validation_alias=TASK_ID)
    actor_name: str | None = Field(default=None, alias="actorName")


class UpdateTaskRequest(BaseModel):
    """局部更新请求体（缺省字段不修改）"""

    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    priority: TaskPriority | None = None
    assignee_names: list[str] | None = Field(default=None, validation_alias=ASSIGNEE_NAMES)
    actor_name: str | None = Field(default=None, alias="actorName")


async def _resolve_names(store_group: StoreGroup, names: list[str]) -> list[str]:
    """名称 -> agent_id，未登记的名称记录告警后丢弃"""
    agent_ids: list[str] = []
    for name in names:
        agent = await store_group.agent_store.get_by_name(name)
        if agent is None:
            log.warning("unknown_assignee_name", name=name)
            continue
        agent_ids.append(agent.agent_id)
    return agent_ids


async def _optional_agent_id(store_group: StoreGroup, name: str | None) -> str | None:
    if not name:
        return None
    return (await resolve_agent(store_group, name)).agent_id


@router.post("/api/task")
async def create_task(
    body: CreateTaskRequest,
    store_group=Depends(get_store_group),
):
    """创建任务，返回 201 + task_id"""
    creator_id = await _optional_agent_id(store_group, body.creator_name)
    assignee_ids = await _resolve_names(store_group, body.assignee_names)

    service = TaskService(store_group)
    task_id = await service.create_task(
        body.title,
        description=body.description,
        priority=body.priority,
        tags=body.tags,
        assignee_ids=assignee_ids,
        creator_id=creator_id,
    )
    return JSONResponse(status_code=201, content={"ok": True, "task_id": task_id})


@router.post("/api/task/status")
async def update_task_status(
    body: UpdateStatusRequest,
    store_group=Depends(get_store_group),
):
    """更新任务状态；任务不存在时静默成功（updated=false）"""
    actor_id = await _optional_agent_id(store_group, body.agent_name)
    service = TaskService(store_group)
    task = await service.update_status(body.task_id, body.status, actor_id)
    return {"ok": True, "updated": task is not None}


@router.post("/api/task/assign")
async def assign_task(
    body: AssignRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    actor_id = await _optional_agent_id(store_group, body.actor_name)
    service = TaskService(store_group)
    task = await service.assign(body.task_id, agent.agent_id, actor_id)
    return {"ok": True, "updated": task is not None}


@router.get("/api/tasks")
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按存储状态筛选"),
    store_group=Depends(get_store_group),
):
    """任务列表，按 created_at 倒序"""
    service = TaskService(store_group)
    tasks = await service.list_tasks(status.value if status else None)
    return {"tasks": [task_payload(t) for t in tasks]}


@router.get("/api/tasks/inbox")
async def list_inbox(store_group=Depends(get_store_group)):
    """未分配的 inbox 任务，按优先级排序"""
    service = TaskService(store_group)
    return {"tasks": [task_payload(t) for t in await service.list_inbox()]}


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    task = await service.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return {"task": task_payload(task)}


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    store_group=Depends(get_store_group),
):
    actor_id = await _optional_agent_id(store_group, body.actor_name)
    assignee_ids = None
    if body.assignee_names is not None:
        assignee_ids = await _resolve_names(store_group, body.assignee_names)

    service = TaskService(store_group)
    task = await service.update_task(
        task_id,
        title=body.title,
        description=body.description,
        tags=body.tags,
        priority=body.priority,
        assignee_ids=assignee_ids,
        actor_id=actor_id,
    )
    if task is None:
        raise TaskNotFoundError(task_id)
    return {"task": task_payload(task)}


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    if not await service.remove_task(task_id):
        raise TaskNotFoundError(task_id)
    return {"ok": True}


@router.get("/api/tasks/{task_id}/messages")
async def list_task_messages(
    task_id: str,
    limit: int | None = Query(default=None, ge=1, le=200, description="只取最近 N 条"),
    store_group=Depends(get_store_group),
):
    """任务评论，时间正序"""
    service = TaskService(store_group)
    messages = await service.list_messages(task_id, limit)
    return {"messages": [m.model_dump(mode="json") for m in messages]}


@router.get("/api/my-tasks")
async def my_tasks(
    agent: str = Query(description="agent 显示名"),
    store_group=Depends(get_store_group),
):
    resolved = await resolve_agent(store_group, agent)
    service = TaskService(store_group)
    tasks = await service.list_for_agent(resolved.agent_id)
    return {"agent": resolved.name, "tasks": [task_payload(t) for t in tasks]}
