"""CitadelClient 单元测试

使用 httpx.MockTransport 模拟控制面：
1. 请求携带 X-Citadel-Key
2. 非 2xx / 连接失败 -> CitadelApiError
3. 2xx 但响应体结构不符 -> CitadelApiError
"""

from datetime import UTC, datetime

import httpx
import pytest
from citadel.notifier.citadel_client import CitadelClient
from citadel.notifier.exceptions import CitadelApiError

TASK_ID = "01JTASK00000000000000001"


def _client(handler) -> CitadelClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CitadelClient("http://citadel.test/", "key-1", timeout_s=1.0, http_client=http_client)


class TestRequests:
    async def test_get_task(self):
        captured: list[httpx.Request] = []
        now = datetime.now(UTC).isoformat()

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                json={
                    "task": {
                        "task_id": TASK_ID,
                        "title": "Launch",
                        "created_at": now,
                        "updated_at": now,
                    }
                },
            )

        task = await _client(handler).get_task(TASK_ID)

        assert task.title == "Launch"
        assert str(captured[0].url) == f"http://citadel.test/api/tasks/{TASK_ID}"
        assert captured[0].headers["X-Citadel-Key"] == "key-1"

    async def test_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"code": "TASK_NOT_FOUND"}})

        with pytest.raises(CitadelApiError, match="HTTP 404"):
            await _client(handler).get_task(TASK_ID)

    async def test_connect_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CitadelApiError):
            await _client(handler).list_undelivered()


class TestUnexpectedBody:
    """2xx 响应体结构不符时同样是 CitadelApiError，调用方按软失败处理"""

    async def test_missing_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": 1})

        with pytest.raises(CitadelApiError, match="unexpected response body"):
            await _client(handler).get_task(TASK_ID)

    async def test_invalid_model(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"messages": [{"content": "no ids"}]})

        with pytest.raises(CitadelApiError):
            await _client(handler).recent_messages(TASK_ID)

    async def test_wrong_shape(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["not", "an", "object"])

        with pytest.raises(CitadelApiError):
            await _client(handler).list_agents()
