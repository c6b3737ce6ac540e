"""NotificationDaemon -- 通知投递守护进程

单写者对账循环（一轮结束后才开始下一轮拉取）：

    IDLE -> 拉取未投递通知 -> 逐条投递 -> 成功则标记已投递 -> IDLE（sleep poll_interval_s）

每 blocked_check_every 轮额外检查一次 blocked agent，向 supervisor 会话告警。

投递策略：
1. 接收者无会话键：记录错误，通知保持未投递
2. comment 类型，或没有来源任务的 mention：sessions_send 一条提醒，2xx 即成功
3. 带来源任务的 mention：先取任务与最近 5 条评论作为上下文（失败不影响投递）
   - 分配通知（"You were assigned to: " 前缀）：sessions_spawn，accepted 才算成功
   - coordinator 收到且最新评论要求 delegate：sessions_spawn 分派会话
   - 其他：sessions_send 并等待回复，回复回写为评论 / 文档

投递是否成功只取决于外发调用；回复回写失败只记日志，不触发重试。
失败的通知没有重试上限，每轮都会再次尝试。
"""

import asyncio
import re

import structlog
from citadel.core.config import ASSIGNMENT_PREFIX
from citadel.core.models import (
    AgentRole,
    AgentStatus,
    NotificationType,
    PendingNotification,
)

from .alert_cache import BlockedAlertCache
from .citadel_client import CitadelClient
from .config import NotifierConfig
from .exceptions import NotifierError
from .gateway_client import SessionGatewayClient, normalize_session_key
from .models import GatewayReply, NoReply, decode_reply
from .prompts import (
    TaskContext,
    assignment_prompt,
    blocked_alert_prompt,
    delegation_prompt,
    mention_prompt,
    ping_prompt,
)
from .replies import detect_document_type, is_no_action, parse_reply_sections

log = structlog.get_logger()

# mention 上下文中附带的最近评论条数
CONTEXT_COMMENT_COUNT = 5

DELEGATION_PATTERN = re.compile(r"\bdelegat(?:e|ion)\b", re.IGNORECASE)


class NotificationDaemon:
    """通知投递守护进程"""

    def __init__(
        self,
        config: NotifierConfig,
        citadel: CitadelClient,
        gateway: SessionGatewayClient,
        alert_cache: BlockedAlertCache | None = None,
    ) -> None:
        self._config = config
        self._citadel = citadel
        self._gateway = gateway
        self._alert_cache = alert_cache or BlockedAlertCache()
        self._stop_event = asyncio.Event()
        self._cycle = 0

    @property
    def alert_cache(self) -> BlockedAlertCache:
        return self._alert_cache

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """请求停止：当前轮跑完后退出，不中途打断"""
        self._stop_event.set()

    async def run(self) -> None:
        """主循环，直到 stop() 被调用"""
        log.info(
            "notifier_started",
            poll_interval_s=self._config.poll_interval_s,
            gateway_url=self._config.gateway_url,
            citadel_url=self._config.citadel_url,
        )

        while not self.stopping:
            try:
                await self.poll_once()
            except Exception:
                log.exception("poll_cycle_failed", cycle=self._cycle)

            if self.stopping:
                break
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._config.poll_interval_s,
                )
            except TimeoutError:
                pass

        log.info("notifier_stopped", cycles=self._cycle)

    async def poll_once(self) -> int:
        """执行一轮投递

        Returns:
            本轮标记为已投递的通知数
        """
        self._cycle += 1

        if self._cycle % self._config.blocked_check_every == 0:
            log.debug("notifier_polling", cycle=self._cycle)
            try:
                await self.check_blocked_agents()
            except Exception:
                log.exception("blocked_check_failed", cycle=self._cycle)

        notifications = await self._citadel.list_undelivered(self._config.page_size)
        if not notifications:
            return 0

        log.info("undelivered_found", count=len(notifications), cycle=self._cycle)

        delivered = 0
        for notification in notifications:
            try:
                if await self.deliver(notification):
                    await self._citadel.mark_delivered(notification.notification_id)
                    delivered += 1
            except Exception:
                log.exception(
                    "delivery_failed",
                    notification_id=notification.notification_id,
                    agent=notification.agent_name,
                )
        return delivered

    async def deliver(self, notification: PendingNotification) -> bool:
        """投递单条通知

        Returns:
            True 表示外发调用成功，可以标记已投递
        """
        agent_name = notification.agent_name
        if not notification.agent_session_key:
            log.error(
                "missing_session_key",
                notification_id=notification.notification_id,
                agent=agent_name,
            )
            return False

        session_key = normalize_session_key(notification.agent_session_key)
        log.info(
            "delivering_notification",
            notification_id=notification.notification_id,
            agent=agent_name,
            session_key=session_key,
            type=notification.type.value,
        )

        if notification.type == NotificationType.MENTION and notification.source_task_id:
            return await self._deliver_mention(notification, session_key)
        return await self._deliver_ping(notification, session_key)

    async def _deliver_ping(self, notification: PendingNotification, session_key: str) -> bool:
        try:
            await self._gateway.send(
                session_key,
                ping_prompt(notification.message),
                self._config.request_timeout_s,
            )
        except NotifierError as e:
            log.warning(
                "ping_delivery_failed",
                notification_id=notification.notification_id,
                agent=notification.agent_name,
                error=str(e),
            )
            return False

        log.info("notification_delivered", notification_id=notification.notification_id)
        return True

    async def _deliver_mention(
        self,
        notification: PendingNotification,
        session_key: str,
    ) -> bool:
        context = await self._load_context(notification.source_task_id or "")

        if notification.message.startswith(ASSIGNMENT_PREFIX):
            return await self._spawn(notification, session_key, assignment_prompt(context))

        if self._is_delegation(notification, context):
            return await self._spawn(
                notification,
                session_key,
                delegation_prompt(context, notification.message),
            )

        try:
            response = await self._gateway.send(
                session_key,
                mention_prompt(context, notification.message),
                self._config.request_timeout_s,
            )
        except NotifierError as e:
            log.warning(
                "mention_delivery_failed",
                notification_id=notification.notification_id,
                agent=notification.agent_name,
                error=str(e),
            )
            return False

        if response.ok:
            reply = decode_reply(response.result)
        else:
            # 网关已收到请求但拒绝执行：视为已投递，无回复
            log.info(
                "gateway_declined",
                notification_id=notification.notification_id,
                error=response.error,
            )
            reply = NoReply(reason="gateway returned ok=false")

        try:
            await self._handle_reply(notification, context, reply)
        except Exception:
            log.exception(
                "reply_handling_failed",
                notification_id=notification.notification_id,
                agent=notification.agent_name,
            )
        return True

    async def _spawn(
        self,
        notification: PendingNotification,
        session_key: str,
        prompt: str,
    ) -> bool:
        try:
            response = await self._gateway.spawn(
                session_key,
                prompt,
                self._config.spawn_run_timeout_s,
                self._config.simple_timeout_s,
            )
        except NotifierError as e:
            log.warning(
                "spawn_failed",
                notification_id=notification.notification_id,
                agent=notification.agent_name,
                error=str(e),
            )
            return False

        if not response.spawn_accepted:
            log.warning(
                "spawn_rejected",
                notification_id=notification.notification_id,
                agent=notification.agent_name,
                result=response.result,
            )
            return False

        details = response.result.get("details", {})
        log.info(
            "spawn_accepted",
            notification_id=notification.notification_id,
            agent=notification.agent_name,
            child_session_key=details.get("childSessionKey"),
        )
        return True

    async def _load_context(self, task_id: str) -> TaskContext:
        """任务标题、描述与最近评论；任一获取失败都只是缺少该部分上下文"""
        context = TaskContext(task_id=task_id)
        try:
            task = await self._citadel.get_task(task_id)
            context.title = task.title or context.title
            context.description = task.description
        except NotifierError as e:
            log.debug("task_context_unavailable", task_id=task_id, error=str(e))
        try:
            context.recent_comments = await self._citadel.recent_messages(
                task_id, CONTEXT_COMMENT_COUNT
            )
        except NotifierError as e:
            log.debug("comment_context_unavailable", task_id=task_id, error=str(e))
        return context

    @staticmethod
    def _is_delegation(notification: PendingNotification, context: TaskContext) -> bool:
        """coordinator 收到 mention 且 mention 作者的最新评论要求 delegate

        作者未知时退回任务的最新评论。
        """
        if notification.agent_role != AgentRole.COORDINATOR:
            return False
        comments = context.recent_comments
        if notification.author_agent_id:
            comments = [c for c in comments if c.agent_id == notification.author_agent_id]
        if not comments:
            return False
        return DELEGATION_PATTERN.search(comments[-1].content) is not None

    async def _handle_reply(
        self,
        notification: PendingNotification,
        context: TaskContext,
        reply: GatewayReply,
    ) -> None:
        """把 agent 回复回写为评论（以及可选的文档）"""
        agent_name = notification.agent_name
        task_id = context.task_id

        if is_no_action(reply.text):
            log.info("no_reply", agent=agent_name, task_id=task_id, kind=reply.kind)
            return

        text = (reply.text or "").strip()
        parsed = parse_reply_sections(
            text,
            default_title=f"{agent_name}'s deliverable for: {context.title}",
        )

        if parsed is None:
            await self._citadel.post_comment(agent_name, task_id, text)
            log.info("reply_posted", agent=agent_name, task_id=task_id, preview=text[:100])
            return

        await self._citadel.post_comment(agent_name, task_id, parsed.comment)
        log.info(
            "reply_posted",
            agent=agent_name,
            task_id=task_id,
            preview=parsed.comment[:100],
        )

        if parsed.has_document:
            body = parsed.document_body or ""
            doc_type = detect_document_type(body)
            await self._citadel.post_document(
                agent_name,
                task_id,
                parsed.document_title,
                body,
                doc_type,
            )
            log.info(
                "document_posted",
                agent=agent_name,
                task_id=task_id,
                title=parsed.document_title,
                type=doc_type.value,
            )

    async def check_blocked_agents(self) -> int:
        """向 supervisor 会话告警新近 blocked 的 agent

        Returns:
            本次发出的告警数
        """
        blocked = await self._citadel.list_agents(status=AgentStatus.BLOCKED)
        recovered = await self._alert_cache.prune(a.agent_id for a in blocked)
        if recovered:
            log.info("blocked_agents_recovered", agent_ids=sorted(recovered))

        pending = [a for a in blocked if await self._alert_cache.needs_alert(a.agent_id)]
        if not pending:
            return 0

        supervisor = await self._supervisor_session_key()
        if supervisor is None:
            log.warning("no_supervisor_session", blocked=[a.name for a in pending])
            return 0

        sent = 0
        for agent in pending:
            if agent.session_key and normalize_session_key(agent.session_key) == supervisor:
                continue
            try:
                await self._gateway.send(
                    supervisor,
                    blocked_alert_prompt(agent.name, agent.current_task),
                    self._config.request_timeout_s,
                )
            except NotifierError as e:
                log.warning("blocked_alert_failed", agent=agent.name, error=str(e))
                continue
            await self._alert_cache.mark_alerted(agent.agent_id)
            sent += 1
            log.info("blocked_alert_sent", agent=agent.name, supervisor=supervisor)
        return sent

    async def _supervisor_session_key(self) -> str | None:
        if self._config.supervisor_session_key:
            return normalize_session_key(self._config.supervisor_session_key)
        coordinators = await self._citadel.list_agents(role=AgentRole.COORDINATOR)
        for agent in coordinators:
            if agent.session_key:
                return normalize_session_key(agent.session_key)
        return None
