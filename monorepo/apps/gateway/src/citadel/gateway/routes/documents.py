"""文档与活动路由

POST /api/document: 写入文档
GET  /api/documents: 按作者（agent）或任务查询文档
POST /api/activity: 记录活动
GET  /api/activity: 最近活动
"""

from citadel.core.models import DocumentType
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, require_api_key, resolve_agent
from ..schemas import AGENT_NAME, TASK_ID
from ..services.activity_service import ActivityService
from ..services.document_service import DocumentService

router = APIRouter(dependencies=[Depends(require_api_key)])


class DocumentRequest(BaseModel):
    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    title: str = Field(min_length=1)
    content: str
    type: DocumentType = DocumentType.DELIVERABLE
    task_id: str | None = Field(default=None, validation_alias=TASK_ID)


class ActivityRequest(BaseModel):
    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    action: str
    target_type: str = Field(alias="targetType")
    target_id: str | None = Field(default=None, alias="targetId")
    description: str


@router.post("/api/document")
async def create_document(
    body: DocumentRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    document = await DocumentService(store_group).create_document(
        agent.agent_id,
        body.title,
        body.content,
        body.type,
        body.task_id,
    )
    return JSONResponse(
        status_code=201,
        content={"ok": True, "document_id": document.document_id},
    )


@router.get("/api/documents")
async def list_documents(
    agent: str | None = Query(default=None, description="作者显示名"),
    task_id: str | None = Query(default=None, alias="taskId"),
    store_group=Depends(get_store_group),
):
    author_id = None
    if agent:
        author_id = (await resolve_agent(store_group, agent)).agent_id
    documents = await DocumentService(store_group).list_documents(author_id, task_id)
    return {"documents": [d.model_dump(mode="json") for d in documents]}


@router.post("/api/activity")
async def log_activity(
    body: ActivityRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    activity_id = await ActivityService(store_group).log_activity(
        agent.agent_id,
        body.action,
        body.target_type,
        body.description,
        body.target_id,
    )
    return JSONResponse(status_code=201, content={"ok": True, "activity_id": activity_id})


@router.get("/api/activity")
async def list_activity(
    target_type: str | None = Query(default=None, alias="targetType"),
    store_group=Depends(get_store_group),
):
    activities = await ActivityService(store_group).list_recent(target_type)
    return {"activities": [a.model_dump(mode="json") for a in activities]}
