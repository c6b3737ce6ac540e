"""Notifier 包测试 fixtures"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from citadel.core.models import AgentRole, NotificationType, PendingNotification, Task
from citadel.notifier.citadel_client import CitadelClient
from citadel.notifier.config import NotifierConfig
from citadel.notifier.gateway_client import SessionGatewayClient
from citadel.notifier.models import GatewayResponse


@pytest.fixture
def notifier_config() -> NotifierConfig:
    """短间隔、短超时的测试配置"""
    return NotifierConfig(
        citadel_url="http://citadel.test",
        gateway_url="http://gateway.test",
        poll_interval_s=0.01,
        simple_timeout_s=1.0,
        request_timeout_s=2.0,
        blocked_check_every=2,
    )


@pytest.fixture
def citadel() -> AsyncMock:
    """Citadel 控制面客户端 mock"""
    mock = AsyncMock(spec=CitadelClient)
    mock.list_undelivered.return_value = []
    mock.list_agents.return_value = []
    mock.recent_messages.return_value = []
    now = datetime.now(UTC)
    mock.get_task.return_value = Task(
        task_id="01JTASK00000000000000001",
        title="Launch",
        created_at=now,
        updated_at=now,
    )
    return mock


@pytest.fixture
def gateway() -> AsyncMock:
    """会话网关客户端 mock，默认 sessions_send 成功且无回复"""
    mock = AsyncMock(spec=SessionGatewayClient)
    mock.send.return_value = GatewayResponse(ok=True, result={})
    mock.spawn.return_value = GatewayResponse(
        ok=True, result={"details": {"status": "accepted", "childSessionKey": "child-1"}}
    )
    return mock


@pytest.fixture
def make_notification():
    """构造待投递通知"""

    def _make(
        type: NotificationType = NotificationType.COMMENT,
        message: str = "Alpha commented on: Launch",
        *,
        source_task_id: str | None = "01JTASK00000000000000001",
        session_key: str | None = "agent:gamma:main",
        agent_name: str = "Elon",
        agent_role: AgentRole = AgentRole.BUILDER,
        notification_id: str = "01JNOTE00000000000000001",
        author_agent_id: str | None = None,
    ) -> PendingNotification:
        return PendingNotification(
            notification_id=notification_id,
            agent_id="01JAGNT00000000000000001",
            author_agent_id=author_agent_id,
            author_name="Alpha",
            type=type,
            message=message,
            source_task_id=source_task_id,
            created_at=datetime.now(UTC),
            agent_name=agent_name,
            agent_session_key=session_key,
            agent_role=agent_role,
        )

    return _make
