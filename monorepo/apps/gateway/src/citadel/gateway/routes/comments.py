"""评论路由

POST /api/comment: 对内容执行 preflight（只报告不阻断），随后写评论并 fan-out 通知。
"""

from citadel.core.exceptions import TaskNotFoundError
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, require_api_key, resolve_agent
from ..schemas import AGENT_NAME, TASK_ID
from ..services.message_service import MessageService
from ..services.preflight_service import PreflightService

router = APIRouter(dependencies=[Depends(require_api_key)])


class CommentRequest(BaseModel):
    """评论请求体"""

    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    task_id: str = Field(validation_alias=TASK_ID)
    content: str = Field(min_length=1, description="评论正文")


@router.post("/api/comment")
async def post_comment(
    body: CommentRequest,
    store_group=Depends(get_store_group),
):
    """发表评论

    - 201: 评论已写入，返回通知数与 preflight 结果
    - 404: agent 或任务不存在（不写入）
    """
    agent = await resolve_agent(store_group, body.agent_name)
    if await store_group.task_store.get_task(body.task_id) is None:
        raise TaskNotFoundError(body.task_id)

    preflight = await PreflightService(store_group).run_checks(
        agent.agent_id, body.content, body.task_id
    )
    result = await MessageService(store_group).post_comment(
        body.task_id, agent.agent_id, body.content
    )

    return JSONResponse(
        status_code=201,
        content={
            "ok": True,
            "message_id": result.message_id,
            "notifications": result.notification_count,
            "preflight": [r.model_dump(mode="json") for r in preflight],
        },
    )
