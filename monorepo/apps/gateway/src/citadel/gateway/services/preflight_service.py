"""PreflightService -- 内容规则检查

1. 由 agent 角色得出作用域（scope_for_role）
2. 选出 active + checkable + 有 pattern、作用域为 global 或该作用域的规则
3. 逐条执行 run_pattern_check，每条规则写一行 PreflightLog
4. 返回逐条结果（只报告，不阻止写入）
"""

from datetime import UTC, datetime

import structlog
from citadel.core.config import FAILURE_LIMIT, PREFLIGHT_CONTENT_MAX_LENGTH, RECENT_LIMIT
from citadel.core.exceptions import AgentNotFoundError
from citadel.core.models import (
    Agent,
    PreflightLog,
    PreflightResult,
    Rule,
    RuleScope,
    scope_for_role,
)
from citadel.core.preflight import run_pattern_check
from citadel.core.store import StoreGroup, atomic
from ulid import ULID

log = structlog.get_logger()


class PreflightService:
    """preflight 规则检查服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def rules_for_agent(self, agent: Agent) -> list[Rule]:
        """适用于该 agent 的启用规则（global + 角色作用域）"""
        scopes = [RuleScope.GLOBAL.value]
        agent_scope = scope_for_role(agent.role)
        if agent_scope != RuleScope.GLOBAL:
            scopes.append(agent_scope.value)
        return await self._stores.rule_store.list_active_for_scopes(scopes)

    async def run_checks(
        self,
        agent_id: str,
        content: str,
        task_id: str | None = None,
    ) -> list[PreflightResult]:
        """对内容执行全部适用的可检查规则

        Raises:
            AgentNotFoundError: agent 不存在
        """
        agent = await self._stores.agent_store.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        rules = [
            rule
            for rule in await self.rules_for_agent(agent)
            if rule.checkable and rule.check_pattern
        ]

        now = datetime.now(UTC)
        snippet = content[:PREFLIGHT_CONTENT_MAX_LENGTH]
        results: list[PreflightResult] = []

        async with atomic(self._stores):
            for rule in rules:
                check = run_pattern_check(content, rule.check_pattern or "")
                await self._stores.preflight_log_store.append_log(
                    PreflightLog(
                        log_id=str(ULID()),
                        agent_id=agent_id,
                        task_id=task_id,
                        check_type=f"rule:{rule.rule_id}",
                        passed=check.passed,
                        details=check.details,
                        content=snippet,
                        created_at=now,
                    )
                )
                results.append(
                    PreflightResult(
                        rule_id=rule.rule_id,
                        rule_text=rule.text,
                        tier=rule.tier,
                        passed=check.passed,
                        details=check.details,
                    )
                )

        failed = [r for r in results if not r.passed]
        if failed:
            log.warning(
                "preflight_failed",
                agent_id=agent_id,
                task_id=task_id,
                failed_rules=[r.rule_id for r in failed],
            )
        else:
            log.debug("preflight_passed", agent_id=agent_id, checked=len(results))
        return results

    async def list_recent(
        self,
        agent_id: str | None = None,
        passed: bool | None = None,
    ) -> list[PreflightLog]:
        return await self._stores.preflight_log_store.list_recent(
            RECENT_LIMIT,
            agent_id=agent_id,
            passed=passed,
        )

    async def get_failures(self, agent_id: str) -> list[PreflightLog]:
        return await self._stores.preflight_log_store.list_recent(
            FAILURE_LIMIT,
            agent_id=agent_id,
            passed=False,
        )
