"""CitadelClient -- 守护进程访问 Citadel 控制面的 HTTP 客户端

守护进程只通过控制面 API 读写数据，不直接打开数据库：
- 拉取未投递通知 / 标记已投递
- 读取任务与最近评论（作为 mention 上下文）
- 以 agent 身份发表评论 / 文档
- 列出 blocked agent 与 coordinator
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx
import structlog
from citadel.core.models import (
    Agent,
    AgentRole,
    AgentStatus,
    DocumentType,
    PendingNotification,
    Task,
    TaskMessageView,
)

from .exceptions import CitadelApiError

log = structlog.get_logger()


@contextmanager
def _decoding(path: str) -> Iterator[None]:
    """2xx 但响应体结构不符（缺字段 / 模型校验失败）时转为 CitadelApiError"""
    try:
        yield
    except (KeyError, TypeError, ValueError) as e:
        raise CitadelApiError(path, f"unexpected response body: {e!r}") from e


class CitadelClient:
    """Citadel 控制面客户端

    http_client 可注入（集成测试中传入 ASGITransport 构造的客户端）。
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._http = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        """发送请求并返回 JSON

        Raises:
            CitadelApiError: 连接失败、超时、非 2xx 或响应不是 JSON
        """
        url = f"{self._base_url}{path}"
        headers = {"X-Citadel-Key": self._api_key}
        try:
            async with asyncio.timeout(self._timeout_s):
                resp = await self._http.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=headers,
                    timeout=self._timeout_s,
                )
        except (TimeoutError, httpx.TransportError) as e:
            raise CitadelApiError(path, repr(e)) from e

        if resp.status_code >= 300:
            raise CitadelApiError(path, f"HTTP {resp.status_code} {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise CitadelApiError(path, "invalid JSON response") from e

    async def list_undelivered(self, limit: int = 50) -> list[PendingNotification]:
        data = await self._request(
            "GET", "/api/notifications/undelivered", params={"limit": limit}
        )
        with _decoding("/api/notifications/undelivered"):
            return [PendingNotification.model_validate(n) for n in data["notifications"]]

    async def mark_delivered(self, notification_id: str) -> None:
        await self._request("POST", f"/api/notifications/{notification_id}/delivered")

    async def get_task(self, task_id: str) -> Task:
        data = await self._request("GET", f"/api/tasks/{task_id}")
        with _decoding(f"/api/tasks/{task_id}"):
            return Task.model_validate(data["task"])

    async def recent_messages(self, task_id: str, limit: int = 5) -> list[TaskMessageView]:
        """最近 limit 条评论，时间正序"""
        data = await self._request(
            "GET", f"/api/tasks/{task_id}/messages", params={"limit": limit}
        )
        with _decoding(f"/api/tasks/{task_id}/messages"):
            return [TaskMessageView.model_validate(m) for m in data["messages"]]

    async def post_comment(self, agent_name: str, task_id: str, content: str) -> str:
        data = await self._request(
            "POST",
            "/api/comment",
            json={"agentName": agent_name, "taskId": task_id, "content": content},
        )
        with _decoding("/api/comment"):
            return data["message_id"]

    async def post_document(
        self,
        agent_name: str,
        task_id: str,
        title: str,
        content: str,
        type: DocumentType,
    ) -> str:
        data = await self._request(
            "POST",
            "/api/document",
            json={
                "agentName": agent_name,
                "taskId": task_id,
                "title": title,
                "content": content,
                "type": type.value,
            },
        )
        with _decoding("/api/document"):
            return data["document_id"]

    async def list_agents(
        self,
        status: AgentStatus | None = None,
        role: AgentRole | None = None,
    ) -> list[Agent]:
        params = {}
        if status is not None:
            params["status"] = status.value
        if role is not None:
            params["role"] = role.value
        data = await self._request("GET", "/api/agents", params=params)
        with _decoding("/api/agents"):
            return [Agent.model_validate(a) for a in data["agents"]]
