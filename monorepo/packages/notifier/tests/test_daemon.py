"""NotificationDaemon 单元测试

Citadel 控制面与会话网关均为 AsyncMock：
1. comment 通知 sessions_send 成功即标记已投递
2. 缺少会话键 / 网关失败 -> 保持未投递
3. 分配通知 spawn，accepted 才算成功
4. coordinator 的 delegate 请求 spawn
5. 对话式 mention 的回复回写为评论 / 文档
6. blocked agent 告警去重
7. 主循环停止与单轮异常隔离
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

from citadel.core.models import (
    Agent,
    AgentRole,
    AgentStatus,
    DocumentType,
    NotificationType,
    Task,
    TaskMessageView,
)
from citadel.notifier.alert_cache import BlockedAlertCache
from citadel.notifier.daemon import NotificationDaemon
from citadel.notifier.exceptions import (
    CitadelApiError,
    GatewayResponseError,
    GatewayUnreachableError,
)
from citadel.notifier.models import GatewayResponse

TASK_ID = "01JTASK00000000000000001"


def _task(title: str = "Launch", description: str | None = "Ship the landing page") -> Task:
    now = datetime.now(UTC)
    return Task(
        task_id=TASK_ID,
        title=title,
        description=description,
        created_at=now,
        updated_at=now,
    )


def _comment(content: str, author: str = "Alpha", agent_id: str = "a-author") -> TaskMessageView:
    return TaskMessageView(
        message_id=f"m-{content[:8]}",
        task_id=TASK_ID,
        agent_id=agent_id,
        content=content,
        created_at=datetime.now(UTC),
        author_name=author,
    )


def _agent(
    name: str,
    role: AgentRole = AgentRole.BUILDER,
    status: AgentStatus = AgentStatus.IDLE,
    session_key: str | None = None,
) -> Agent:
    return Agent(
        agent_id=f"id-{name.lower()}",
        name=name,
        role=role,
        status=status,
        session_key=session_key or f"agent:{name.lower()}:main",
        current_task="fixing CI" if status == AgentStatus.BLOCKED else None,
        last_active=datetime.now(UTC),
    )


def _reply(text: str) -> GatewayResponse:
    return GatewayResponse(ok=True, result={"content": [{"type": "text", "text": text}]})


class TestPollOnce:
    """单轮投递"""

    async def test_comment_notification_delivered(
        self, notifier_config, citadel, gateway, make_notification
    ):
        """comment 通知：一次 sessions_send 成功即标记已投递，与回复内容无关"""
        notification = make_notification()
        citadel.list_undelivered.return_value = [notification]
        gateway.send.return_value = _reply("---COMMENT--- ignored ---DOCUMENT--- " + "x" * 80)

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 1

        citadel.list_undelivered.assert_awaited_once_with(50)
        gateway.send.assert_awaited_once_with(
            "agent:gamma:main",
            "🔔 Citadel: Alpha commented on: Launch",
            notifier_config.request_timeout_s,
        )
        citadel.mark_delivered.assert_awaited_once_with(notification.notification_id)
        citadel.post_comment.assert_not_awaited()
        citadel.post_document.assert_not_awaited()

    async def test_missing_session_key_stays_undelivered(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.list_undelivered.return_value = [make_notification(session_key=None)]

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 0

        gateway.send.assert_not_awaited()
        citadel.mark_delivered.assert_not_awaited()

    async def test_short_session_key_normalized(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.list_undelivered.return_value = [make_notification(session_key="gamma")]

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.poll_once()

        assert gateway.send.await_args.args[0] == "agent:gamma:main"

    async def test_gateway_failure_isolated_per_notification(
        self, notifier_config, citadel, gateway, make_notification
    ):
        """第一条失败不影响第二条"""
        first = make_notification(notification_id="n-1")
        second = make_notification(notification_id="n-2")
        citadel.list_undelivered.return_value = [first, second]
        gateway.send.side_effect = [
            GatewayUnreachableError("http://gateway.test", ConnectionError("refused")),
            GatewayResponse(ok=True, result={}),
        ]

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 1

        citadel.mark_delivered.assert_awaited_once_with("n-2")

    async def test_mention_without_task_is_simple_ping(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.list_undelivered.return_value = [
            make_notification(
                NotificationType.MENTION, "Alpha mentioned you", source_task_id=None
            )
        ]

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 1

        citadel.get_task.assert_not_awaited()
        assert gateway.send.await_args.args[1] == "🔔 Citadel: Alpha mentioned you"

    async def test_empty_queue(self, notifier_config, citadel, gateway):
        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 0
        gateway.send.assert_not_awaited()


class TestSpawn:
    """分配与分派：sessions_spawn"""

    async def test_assignment_spawn_accepted(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.get_task.return_value = _task()
        notification = make_notification(
            NotificationType.MENTION, "You were assigned to: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True

        gateway.send.assert_not_awaited()
        session_key, prompt, run_timeout, timeout = gateway.spawn.await_args.args
        assert session_key == "agent:gamma:main"
        assert 'TASK ASSIGNED: "Launch"' in prompt
        assert "Ship the landing page" in prompt
        assert run_timeout == 300
        assert timeout == notifier_config.simple_timeout_s

    async def test_assignment_spawn_rejected(
        self, notifier_config, citadel, gateway, make_notification
    ):
        """spawn 未被接受：保持未投递，下一轮重试"""
        citadel.list_undelivered.return_value = [
            make_notification(NotificationType.MENTION, "You were assigned to: Launch")
        ]
        gateway.spawn.return_value = GatewayResponse(
            ok=True, result={"details": {"status": "forbidden"}}
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 0
        citadel.mark_delivered.assert_not_awaited()

    async def test_assignment_spawn_http_error(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.spawn.side_effect = GatewayResponseError("sessions_spawn", 500, "boom")
        notification = make_notification(
            NotificationType.MENTION, "You were assigned to: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is False

    async def test_coordinator_delegation(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.get_task.return_value = _task()
        citadel.recent_messages.return_value = [
            _comment("earlier note"),
            _comment("@Buddy please delegate this to the team"),
        ]
        notification = make_notification(
            NotificationType.MENTION,
            "Alpha mentioned you in: Launch",
            agent_name="Buddy",
            agent_role=AgentRole.COORDINATOR,
            session_key="agent:alpha:main",
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True

        gateway.send.assert_not_awaited()
        prompt = gateway.spawn.await_args.args[1]
        assert "DELEGATION REQUEST" in prompt
        assert gateway.spawn.await_args.args[0] == "agent:alpha:main"

    async def test_delegation_follows_mention_author(
        self, notifier_config, citadel, gateway, make_notification
    ):
        """只看 mention 作者的最新评论，其他人后续评论里的 delegate 不触发 spawn"""
        citadel.recent_messages.return_value = [
            _comment("@Buddy can you take a look?", agent_id="a-author"),
            _comment("we should delegate the copy work", author="Katy", agent_id="a-katy"),
        ]
        notification = make_notification(
            NotificationType.MENTION,
            "Alpha mentioned you in: Launch",
            agent_name="Buddy",
            agent_role=AgentRole.COORDINATOR,
            author_agent_id="a-author",
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.deliver(notification)

        gateway.spawn.assert_not_awaited()
        gateway.send.assert_awaited_once()

    async def test_delegation_from_author_with_later_comments(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.recent_messages.return_value = [
            _comment("@Buddy please delegate this", agent_id="a-author"),
            _comment("following along", author="Katy", agent_id="a-katy"),
        ]
        notification = make_notification(
            NotificationType.MENTION,
            "Alpha mentioned you in: Launch",
            agent_name="Buddy",
            agent_role=AgentRole.COORDINATOR,
            author_agent_id="a-author",
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True

        assert "DELEGATION REQUEST" in gateway.spawn.await_args.args[1]
        gateway.send.assert_not_awaited()

    async def test_delegation_word_ignored_for_non_coordinator(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.recent_messages.return_value = [_comment("please delegate")]
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.deliver(notification)

        gateway.spawn.assert_not_awaited()
        gateway.send.assert_awaited_once()


class TestConversationalMention:
    """对话式 mention：sessions_send + 回复回写"""

    async def test_reply_with_long_document(
        self, notifier_config, citadel, gateway, make_notification
    ):
        body = "x" * 80
        citadel.get_task.return_value = _task()
        gateway.send.return_value = _reply(
            f"---COMMENT--- ack ---DOCUMENT_TITLE--- Spec ---DOCUMENT--- {body}"
        )
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True

        assert gateway.send.await_args.args[2] == notifier_config.request_timeout_s
        assert '@mention on task "Launch"' in gateway.send.await_args.args[1]
        citadel.post_comment.assert_awaited_once_with("Elon", TASK_ID, "ack")
        citadel.post_document.assert_awaited_once_with(
            "Elon", TASK_ID, "Spec", body, DocumentType.DELIVERABLE
        )

    async def test_reply_with_short_document_posts_comment_only(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.send.return_value = _reply(
            f"---COMMENT--- ack ---DOCUMENT_TITLE--- Spec ---DOCUMENT--- {'y' * 40}"
        )
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.deliver(notification)

        citadel.post_comment.assert_awaited_once_with("Elon", TASK_ID, "ack")
        citadel.post_document.assert_not_awaited()

    async def test_plain_reply_posted_as_comment(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.send.return_value = GatewayResponse(
            ok=True, result={"details": {"reply": "  On it, will report back.  "}}
        )
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.deliver(notification)

        citadel.post_comment.assert_awaited_once_with(
            "Elon", TASK_ID, "On it, will report back."
        )

    async def test_default_document_title(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.get_task.return_value = _task(title="Q3 plan")
        body = "Competitor analysis " * 5
        gateway.send.return_value = _reply(f"---COMMENT--- done ---DOCUMENT--- {body}")
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Q3 plan"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        await daemon.deliver(notification)

        args = citadel.post_document.await_args.args
        assert args[2] == "Elon's deliverable for: Q3 plan"
        assert args[4] == DocumentType.RESEARCH

    async def test_no_reply_posts_nothing(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.send.return_value = _reply("NO_REPLY")
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True
        citadel.post_comment.assert_not_awaited()

    async def test_gateway_declined_still_delivered(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.send.return_value = GatewayResponse(ok=False, error="session busy")
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True
        citadel.post_comment.assert_not_awaited()

    async def test_reply_handling_failure_does_not_retry(
        self, notifier_config, citadel, gateway, make_notification
    ):
        """回写评论失败只记日志，通知仍标记已投递"""
        citadel.list_undelivered.return_value = [
            make_notification(NotificationType.MENTION, "Alpha mentioned you in: Launch")
        ]
        gateway.send.return_value = _reply("Here is my answer")
        citadel.post_comment.side_effect = CitadelApiError("/api/comment", "HTTP 500")

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.poll_once() == 1
        citadel.mark_delivered.assert_awaited_once()

    async def test_context_fetch_failure_is_soft(
        self, notifier_config, citadel, gateway, make_notification
    ):
        citadel.get_task.side_effect = CitadelApiError("/api/tasks/x", "HTTP 404")
        citadel.recent_messages.side_effect = CitadelApiError("/api/tasks/x/messages", "down")
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is True
        assert '"Unknown task"' in gateway.send.await_args.args[1]

    async def test_mention_send_failure(
        self, notifier_config, citadel, gateway, make_notification
    ):
        gateway.send.side_effect = GatewayUnreachableError(
            "http://gateway.test", TimeoutError()
        )
        notification = make_notification(
            NotificationType.MENTION, "Alpha mentioned you in: Launch"
        )

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.deliver(notification) is False


class TestBlockedAlerts:
    """blocked agent 告警"""

    def _route_agents(self, citadel: AsyncMock, blocked: list[Agent], coordinators: list[Agent]):
        async def list_agents(status=None, role=None):
            if status == AgentStatus.BLOCKED:
                return list(blocked)
            if role == AgentRole.COORDINATOR:
                return list(coordinators)
            return []

        citadel.list_agents.side_effect = list_agents

    async def test_alert_sent_once_while_blocked(self, notifier_config, citadel, gateway):
        mike = _agent("Mike", AgentRole.SECURITY, AgentStatus.BLOCKED)
        buddy = _agent("Buddy", AgentRole.COORDINATOR, session_key="agent:alpha:main")
        blocked = [mike]
        self._route_agents(citadel, blocked, [buddy])
        cache = BlockedAlertCache()

        daemon = NotificationDaemon(notifier_config, citadel, gateway, cache)
        assert await daemon.check_blocked_agents() == 1
        assert await daemon.check_blocked_agents() == 0

        session_key, prompt, timeout = gateway.send.await_args.args
        assert session_key == "agent:alpha:main"
        assert "Mike is blocked (working on: fixing CI)" in prompt
        assert gateway.send.await_count == 1
        assert mike.agent_id in daemon.alert_cache

        # 恢复后再次 blocked：重新告警
        blocked.clear()
        await daemon.check_blocked_agents()
        assert mike.agent_id not in cache
        blocked.append(mike)
        assert await daemon.check_blocked_agents() == 1
        assert gateway.send.await_count == 2

    async def test_configured_supervisor(self, notifier_config, citadel, gateway):
        config = notifier_config.model_copy(update={"supervisor_session_key": "ops"})
        self._route_agents(citadel, [_agent("Mike", status=AgentStatus.BLOCKED)], [])

        daemon = NotificationDaemon(config, citadel, gateway)
        await daemon.check_blocked_agents()

        assert gateway.send.await_args.args[0] == "agent:ops:main"

    async def test_no_supervisor_no_alert(self, notifier_config, citadel, gateway):
        mike = _agent("Mike", status=AgentStatus.BLOCKED)
        self._route_agents(citadel, [mike], [])

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.check_blocked_agents() == 0
        gateway.send.assert_not_awaited()
        assert mike.agent_id not in daemon.alert_cache

    async def test_failed_alert_retried_next_check(self, notifier_config, citadel, gateway):
        mike = _agent("Mike", status=AgentStatus.BLOCKED)
        buddy = _agent("Buddy", AgentRole.COORDINATOR)
        self._route_agents(citadel, [mike], [buddy])
        gateway.send.side_effect = [
            GatewayUnreachableError("http://gateway.test", ConnectionError()),
            GatewayResponse(ok=True, result={}),
        ]

        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        assert await daemon.check_blocked_agents() == 0
        assert await daemon.check_blocked_agents() == 1

    async def test_checked_every_nth_cycle(self, notifier_config, citadel, gateway):
        """blocked_check_every=2：第 2、4 轮检查"""
        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        for _ in range(4):
            await daemon.poll_once()

        blocked_calls = [
            call for call in citadel.list_agents.await_args_list
            if call.kwargs.get("status") == AgentStatus.BLOCKED
        ]
        assert len(blocked_calls) == 2


class TestRunLoop:
    """主循环"""

    async def test_stop_after_cycle(self, notifier_config, citadel, gateway):
        daemon = NotificationDaemon(notifier_config, citadel, gateway)

        async def list_undelivered(limit):
            daemon.stop()
            return []

        citadel.list_undelivered.side_effect = list_undelivered
        await daemon.run()

        assert daemon.stopping is True
        citadel.list_undelivered.assert_awaited_once()

    async def test_cycle_failure_does_not_crash(self, notifier_config, citadel, gateway):
        """单轮异常被记录，下一轮照常执行"""
        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        calls = 0

        async def list_undelivered(limit):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise CitadelApiError("/api/notifications/undelivered", "down")
            daemon.stop()
            return []

        citadel.list_undelivered.side_effect = list_undelivered
        await daemon.run()

        assert calls == 2

    async def test_stop_before_run(self, notifier_config, citadel, gateway):
        daemon = NotificationDaemon(notifier_config, citadel, gateway)
        daemon.stop()
        await daemon.run()
        citadel.list_undelivered.assert_not_awaited()
