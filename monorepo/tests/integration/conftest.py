"""集成测试共享 fixture

真实 FastAPI app（ASGITransport）+ 真实 CitadelClient；
会话网关由 httpx.MockTransport 模拟，记录每次工具调用。
"""

import json
import os
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest_asyncio
from citadel.core.store import StoreGroup
from citadel.notifier.citadel_client import CitadelClient
from citadel.notifier.config import NotifierConfig
from citadel.notifier.daemon import NotificationDaemon
from citadel.notifier.gateway_client import SessionGatewayClient

INTEGRATION_API_KEY = "integration-key"


class FakeGateway:
    """记录工具调用并按工具名返回预设响应"""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.responses: dict[str, Callable[[dict], dict]] = {
            "sessions_send": lambda body: {"ok": True, "result": {}},
            "sessions_spawn": lambda body: {
                "ok": True,
                "result": {"details": {"status": "accepted", "childSessionKey": "child-1"}},
            },
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        return httpx.Response(200, json=self.responses[body["tool"]](body))

    def calls_for(self, tool: str) -> list[dict]:
        return [c for c in self.calls if c["tool"] == tool]


@pytest_asyncio.fixture
async def integration_app(store_group: StoreGroup, tmp_db_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["CITADEL_DB_PATH"] = str(tmp_db_path)
    os.environ["CITADEL_API_KEY"] = INTEGRATION_API_KEY
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from citadel.gateway.main import create_app

    app = create_app()
    app.state.store_group = store_group

    yield app

    os.environ.pop("CITADEL_DB_PATH", None)
    os.environ.pop("CITADEL_API_KEY", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=integration_app),
        base_url="http://citadel.test",
        headers={"X-Citadel-Key": INTEGRATION_API_KEY},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def daemon(
    integration_app, fake_gateway: FakeGateway
) -> AsyncGenerator[NotificationDaemon, None]:
    """接入真实控制面与模拟网关的投递守护进程"""
    config = NotifierConfig(
        citadel_url="http://citadel.test",
        gateway_url="http://gateway.test",
        poll_interval_s=0.01,
        request_timeout_s=5.0,
        simple_timeout_s=5.0,
    )
    citadel_http = httpx.AsyncClient(transport=httpx.ASGITransport(app=integration_app))
    gateway_http = httpx.AsyncClient(transport=httpx.MockTransport(fake_gateway.handler))
    citadel = CitadelClient(
        config.citadel_url,
        INTEGRATION_API_KEY,
        timeout_s=config.simple_timeout_s,
        http_client=citadel_http,
    )
    gateway = SessionGatewayClient(config.gateway_url, "gw-token", http_client=gateway_http)

    yield NotificationDaemon(config, citadel, gateway)

    await citadel_http.aclose()
    await gateway_http.aclose()
