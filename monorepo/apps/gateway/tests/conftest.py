"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from citadel.core.store import StoreGroup
from httpx import ASGITransport, AsyncClient

TEST_API_KEY = "test-citadel-key"


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, tmp_db_path: Path):
    """创建测试用 FastAPI app，手动注入 Store（模拟 lifespan）"""
    os.environ["CITADEL_DB_PATH"] = str(tmp_db_path)
    os.environ["CITADEL_API_KEY"] = TEST_API_KEY
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from citadel.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    yield application

    for key in ["CITADEL_DB_PATH", "CITADEL_API_KEY", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """带共享密钥的 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Citadel-Key": TEST_API_KEY},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def anon_client(app) -> AsyncGenerator[AsyncClient, None]:
    """不带共享密钥的 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
