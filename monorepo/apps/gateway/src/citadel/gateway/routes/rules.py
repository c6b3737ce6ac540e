"""规则与 preflight 路由

POST   /api/rules: 新建规则
GET    /api/rules: 规则列表，支持 scope / tier / active 筛选
GET    /api/rules/for-agent: 适用于某 agent 的启用规则
PATCH  /api/rules/{rule_id}: 局部更新
DELETE /api/rules/{rule_id}: 删除
POST   /api/preflight: 对内容执行检查
GET    /api/preflight/logs: 最近检查日志
GET    /api/preflight/failures: 某 agent 最近的失败记录
"""

from citadel.core.models import RuleScope, RuleTier
from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, require_api_key, resolve_agent
from ..schemas import AGENT_NAME, TASK_ID
from ..services.preflight_service import PreflightService
from ..services.rule_service import RuleService

router = APIRouter(dependencies=[Depends(require_api_key)])

_CHECK_PATTERN = AliasChoices("checkPattern", "check_pattern")


class CreateRuleRequest(BaseModel):
    text: str = Field(min_length=1)
    why: str = ""
    scope: RuleScope = RuleScope.GLOBAL
    tier: RuleTier = RuleTier.STANDARD
    checkable: bool = False
    check_pattern: str | None = Field(default=None, validation_alias=_CHECK_PATTERN)


class UpdateRuleRequest(BaseModel):
    text: str | None = None
    why: str | None = None
    scope: RuleScope | None = None
    tier: RuleTier | None = None
    checkable: bool | None = None
    check_pattern: str | None = Field(default=None, validation_alias=_CHECK_PATTERN)
    active: bool | None = None


class PreflightRequest(BaseModel):
    agent_name: str | None = Field(default=None, validation_alias=AGENT_NAME)
    content: str
    task_id: str | None = Field(default=None, validation_alias=TASK_ID)


@router.post("/api/rules")
async def create_rule(
    body: CreateRuleRequest,
    store_group=Depends(get_store_group),
):
    rule = await RuleService(store_group).create_rule(
        body.text,
        why=body.why,
        scope=body.scope,
        tier=body.tier,
        checkable=body.checkable,
        check_pattern=body.check_pattern,
    )
    return JSONResponse(status_code=201, content={"rule": rule.model_dump(mode="json")})


@router.get("/api/rules")
async def list_rules(
    scope: RuleScope | None = Query(default=None),
    tier: RuleTier | None = Query(default=None),
    active: bool | None = Query(default=None),
    store_group=Depends(get_store_group),
):
    rules = await RuleService(store_group).list_rules(
        scope.value if scope else None,
        tier.value if tier else None,
        active,
    )
    return {"rules": [r.model_dump(mode="json") for r in rules]}


@router.get("/api/rules/for-agent")
async def rules_for_agent(
    agent: str = Query(description="agent 显示名"),
    store_group=Depends(get_store_group),
):
    resolved = await resolve_agent(store_group, agent)
    rules = await PreflightService(store_group).rules_for_agent(resolved)
    return {
        "agent": resolved.name,
        "scope": resolved.rule_scope.value,
        "rules": [r.model_dump(mode="json") for r in rules],
    }


@router.patch("/api/rules/{rule_id}")
async def update_rule(
    rule_id: str,
    body: UpdateRuleRequest,
    store_group=Depends(get_store_group),
):
    rule = await RuleService(store_group).update_rule(rule_id, **body.model_dump())
    return {"rule": rule.model_dump(mode="json")}


@router.delete("/api/rules/{rule_id}")
async def delete_rule(
    rule_id: str,
    store_group=Depends(get_store_group),
):
    await RuleService(store_group).delete_rule(rule_id)
    return {"ok": True}


@router.post("/api/preflight")
async def run_preflight(
    body: PreflightRequest,
    store_group=Depends(get_store_group),
):
    agent = await resolve_agent(store_group, body.agent_name)
    results = await PreflightService(store_group).run_checks(
        agent.agent_id, body.content, body.task_id
    )
    return {
        "passed": all(r.passed for r in results),
        "results": [r.model_dump(mode="json") for r in results],
    }


@router.get("/api/preflight/logs")
async def preflight_logs(
    agent: str | None = Query(default=None),
    passed: bool | None = Query(default=None),
    store_group=Depends(get_store_group),
):
    agent_id = None
    if agent:
        agent_id = (await resolve_agent(store_group, agent)).agent_id
    logs = await PreflightService(store_group).list_recent(agent_id, passed)
    return {"logs": [entry.model_dump(mode="json") for entry in logs]}


@router.get("/api/preflight/failures")
async def preflight_failures(
    agent: str = Query(description="agent 显示名"),
    store_group=Depends(get_store_group),
):
    resolved = await resolve_agent(store_group, agent)
    logs = await PreflightService(store_group).get_failures(resolved.agent_id)
    return {"logs": [entry.model_dump(mode="json") for entry in logs]}
