"""RuleService -- 规则增删改查"""

from datetime import UTC, datetime

import structlog
from citadel.core.exceptions import RuleNotFoundError
from citadel.core.models import Rule, RuleScope, RuleTier
from citadel.core.store import StoreGroup, atomic
from ulid import ULID

log = structlog.get_logger()

# 允许 PATCH 修改的字段
_MUTABLE_FIELDS = ("text", "why", "scope", "tier", "checkable", "check_pattern", "active")


class RuleService:
    """规则业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_rule(
        self,
        text: str,
        *,
        why: str = "",
        scope: RuleScope = RuleScope.GLOBAL,
        tier: RuleTier = RuleTier.STANDARD,
        checkable: bool = False,
        check_pattern: str | None = None,
    ) -> Rule:
        now = datetime.now(UTC)
        rule = Rule(
            rule_id=str(ULID()),
            text=text,
            why=why,
            scope=scope,
            tier=tier,
            checkable=checkable,
            check_pattern=check_pattern,
            active=True,
            created_at=now,
            updated_at=now,
        )
        async with atomic(self._stores):
            await self._stores.rule_store.create_rule(rule)
        log.info("rule_created", rule_id=rule.rule_id, scope=scope.value)
        return rule

    async def update_rule(self, rule_id: str, **changes) -> Rule:
        """局部更新，值为 None 的字段忽略

        Raises:
            RuleNotFoundError: 规则不存在
        """
        async with atomic(self._stores):
            rule = await self._stores.rule_store.get_rule(rule_id)
            if rule is None:
                raise RuleNotFoundError(rule_id)
            patch = {
                key: value
                for key, value in changes.items()
                if key in _MUTABLE_FIELDS and value is not None
            }
            patch["updated_at"] = datetime.now(UTC)
            updated = rule.model_copy(update=patch)
            await self._stores.rule_store.save_rule(updated)
        return updated

    async def delete_rule(self, rule_id: str) -> None:
        async with atomic(self._stores):
            if not await self._stores.rule_store.delete_rule(rule_id):
                raise RuleNotFoundError(rule_id)
        log.info("rule_deleted", rule_id=rule_id)

    async def list_rules(
        self,
        scope: str | None = None,
        tier: str | None = None,
        active: bool | None = None,
    ) -> list[Rule]:
        return await self._stores.rule_store.list_rules(scope, tier, active)
