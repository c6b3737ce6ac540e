"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与鉴权

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

import hmac

from citadel.core.config import get_api_key
from citadel.core.exceptions import AgentNotFoundError
from citadel.core.models import Agent
from citadel.core.store import StoreGroup
from fastapi import Header, Request

from .errors import RequestError


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


async def require_api_key(
    x_citadel_key: str | None = Header(default=None, alias="X-Citadel-Key"),
) -> None:
    """校验 X-Citadel-Key 共享密钥"""
    expected = get_api_key()
    # compare_digest 的 str 参数只能是 ASCII，统一按字节比较
    if not x_citadel_key or not hmac.compare_digest(
        x_citadel_key.encode(), expected.encode()
    ):
        raise RequestError(401, "UNAUTHORIZED", "Unauthorized")


async def resolve_agent(store_group: StoreGroup, name: str | None) -> Agent:
    """按显示名解析 agent

    Raises:
        RequestError: 未提供名称（400）
        AgentNotFoundError: 名称未登记（404）
    """
    if not name or not name.strip():
        raise RequestError(400, "MISSING_AGENT_NAME", "Agent name is required")
    agent = await store_group.agent_store.get_by_name(name)
    if agent is None:
        raise AgentNotFoundError(name)
    return agent
