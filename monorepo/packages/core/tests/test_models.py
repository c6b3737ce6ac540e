"""Domain Model 单元测试

测试内容：
1. 枚举取值与 StrEnum 行为
2. 角色 -> 规则作用域映射
3. 派生展示状态 effective_status
4. Task.assignee_ids 去重保序
"""

from datetime import UTC, datetime

from citadel.core.models import (
    PRIORITY_ORDER,
    ROLE_SCOPES,
    Agent,
    AgentRole,
    PendingNotification,
    RuleScope,
    Task,
    TaskPriority,
    TaskStatus,
    effective_status,
    scope_for_role,
)


class TestEnums:
    """枚举测试"""

    def test_task_status_values(self):
        """TaskStatus 包含五个存储状态"""
        assert [s.value for s in TaskStatus] == [
            "inbox",
            "assigned",
            "in_progress",
            "review",
            "done",
        ]

    def test_str_enum_compares_with_str(self):
        """StrEnum 可直接与字符串比较"""
        assert TaskStatus.IN_PROGRESS == "in_progress"
        assert TaskStatus("review") is TaskStatus.REVIEW

    def test_priority_order(self):
        """urgent 排在最前，low 最后"""
        ordered = sorted(TaskPriority, key=lambda p: PRIORITY_ORDER[p])
        assert ordered == [
            TaskPriority.URGENT,
            TaskPriority.HIGH,
            TaskPriority.MEDIUM,
            TaskPriority.LOW,
        ]


class TestRoleScopes:
    """角色与规则作用域映射"""

    def test_every_role_has_a_scope(self):
        assert set(ROLE_SCOPES) == set(AgentRole)

    def test_known_mappings(self):
        assert scope_for_role(AgentRole.COORDINATOR) == RuleScope.COORDINATION
        assert scope_for_role("growth") == RuleScope.SOCIAL
        assert scope_for_role(AgentRole.BUILDER) == RuleScope.BUILDING

    def test_unknown_role_falls_back_to_global(self):
        """未知角色只适用 global 规则"""
        assert scope_for_role("astronaut") == RuleScope.GLOBAL

    def test_agent_rule_scope_property(self):
        agent = Agent(
            agent_id="01JAGT000000000000000001",
            name="Burry",
            role=AgentRole.TRADING,
            last_active=datetime.now(UTC),
        )
        assert agent.rule_scope == RuleScope.TRADING


class TestEffectiveStatus:
    """派生展示状态"""

    def test_inbox_with_assignees_shows_assigned(self):
        assert effective_status(TaskStatus.INBOX, 1) == TaskStatus.ASSIGNED

    def test_inbox_without_assignees_stays_inbox(self):
        assert effective_status(TaskStatus.INBOX, 0) == TaskStatus.INBOX

    def test_other_statuses_unchanged(self):
        for status in (TaskStatus.IN_PROGRESS, TaskStatus.REVIEW, TaskStatus.DONE):
            assert effective_status(status, 3) == status

    def test_display_status_does_not_touch_stored_status(self):
        """display_status 只是视图，存储字段保持 inbox"""
        now = datetime.now(UTC)
        task = Task(
            task_id="01JTASK00000000000000001",
            title="调研竞品",
            assignee_ids=["a1"],
            created_at=now,
            updated_at=now,
        )
        assert task.status == TaskStatus.INBOX
        assert task.display_status == TaskStatus.ASSIGNED


class TestTaskModel:
    """Task 模型"""

    def test_assignee_ids_deduplicated_in_order(self):
        now = datetime.now(UTC)
        task = Task(
            task_id="01JTASK00000000000000002",
            title="t",
            assignee_ids=["b", "a", "b", "c", "a"],
            created_at=now,
            updated_at=now,
        )
        assert task.assignee_ids == ["b", "a", "c"]

    def test_defaults(self):
        now = datetime.now(UTC)
        task = Task(task_id="x", title="t", created_at=now, updated_at=now)
        assert task.priority == TaskPriority.MEDIUM
        assert task.tags == []
        assert task.description is None


class TestPendingNotification:
    """PendingNotification 序列化"""

    def test_round_trips_through_json(self):
        pending = PendingNotification(
            notification_id="n1",
            agent_id="a1",
            author_name="Buddy",
            type="mention",
            message="Buddy mentioned you in: t",
            source_task_id="t1",
            created_at=datetime.now(UTC),
            agent_name="Elon",
            agent_session_key="agent:gamma:main",
            agent_role="builder",
        )
        data = pending.model_dump(mode="json")
        restored = PendingNotification.model_validate(data)
        assert restored.agent_role == AgentRole.BUILDER
        assert restored.delivered is False
        assert restored.read is False
