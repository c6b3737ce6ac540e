"""Agent 路由

POST /api/agents: 登记 agent（同名已存在返回 200）
GET  /api/agents: agent 列表，支持 status / role 筛选
POST /api/heartbeat: 心跳上报
"""

from citadel.core.models import AgentLevel, AgentRole, AgentStatus
from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, require_api_key
from ..errors import RequestError
from ..schemas import AGENT_NAME
from ..services.agent_service import AgentService

router = APIRouter(dependencies=[Depends(require_api_key)])


class RegisterAgentRequest(BaseModel):
    """登记请求体"""

    name: str = Field(min_length=1, validation_alias=AGENT_NAME)
    role: AgentRole
    level: AgentLevel = AgentLevel.SPECIALIST
    session_key: str | None = Field(
        default=None, validation_alias=AliasChoices("sessionKey", "session_key")
    )
    avatar_emoji: str = Field(
        default="", validation_alias=AliasChoices("avatarEmoji", "avatar_emoji")
    )


class HeartbeatRequest(BaseModel):
    """心跳请求体"""

    session_key: str | None = Field(
        default=None, validation_alias=AliasChoices("sessionKey", "session_key")
    )
    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    status: str = "online"
    current_task: str | None = Field(
        default=None, validation_alias=AliasChoices("currentTask", "current_task")
    )


@router.post("/api/agents")
async def register_agent(
    body: RegisterAgentRequest,
    store_group=Depends(get_store_group),
):
    agent, created = await AgentService(store_group).register(
        body.name,
        body.role,
        level=body.level,
        session_key=body.session_key,
        avatar_emoji=body.avatar_emoji,
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content={"agent": agent.model_dump(mode="json"), "created": created},
    )


@router.get("/api/agents")
async def list_agents(
    status: AgentStatus | None = Query(default=None),
    role: AgentRole | None = Query(default=None),
    store_group=Depends(get_store_group),
):
    agents = await AgentService(store_group).list_agents(
        status.value if status else None,
        role.value if role else None,
    )
    return {"agents": [a.model_dump(mode="json") for a in agents]}


@router.post("/api/heartbeat")
async def heartbeat(
    body: HeartbeatRequest,
    store_group=Depends(get_store_group),
):
    if not body.session_key and not body.agent_name:
        raise RequestError(400, "MISSING_AGENT", "sessionKey or agentName is required")
    try:
        agent = await AgentService(store_group).heartbeat(
            body.status,
            session_key=body.session_key,
            name=body.agent_name,
            current_task=body.current_task,
        )
    except ValueError as e:
        raise RequestError(400, "INVALID_STATUS", str(e)) from e
    return {"ok": True, "agent": agent.name, "status": agent.status.value}
