"""枚举定义

包含 TaskStatus / TaskPriority / AgentStatus / AgentLevel / AgentRole /
NotificationType / RuleScope / RuleTier / DocumentType 枚举，
以及角色到规则作用域的唯一映射 ROLE_SCOPES 和派生状态视图 effective_status。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 生命周期状态

    状态之间不做流转校验：任意状态可以跳到任意状态（含回退），
    这是有意保留的宽松语义。
    """

    INBOX = "inbox"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(StrEnum):
    """Task 优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# inbox 列表排序权重（越小越靠前）
PRIORITY_ORDER: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class AgentStatus(StrEnum):
    """Agent 工作状态"""

    IDLE = "idle"
    WORKING = "working"
    BLOCKED = "blocked"


class AgentLevel(StrEnum):
    """Agent 级别"""

    LEAD = "lead"
    SPECIALIST = "specialist"
    INTERN = "intern"


class AgentRole(StrEnum):
    """Agent 角色 -- 决定 preflight 规则作用域"""

    COORDINATOR = "coordinator"
    GROWTH = "growth"
    TRADING = "trading"
    BUILDER = "builder"
    SECURITY = "security"
    JOBS = "jobs"


class NotificationType(StrEnum):
    """通知类型"""

    MENTION = "mention"
    COMMENT = "comment"


class RuleScope(StrEnum):
    """规则作用域"""

    GLOBAL = "global"
    SOCIAL = "social"
    TRADING = "trading"
    SECURITY = "security"
    JOBS = "jobs"
    BUILDING = "building"
    COORDINATION = "coordination"


class RuleTier(StrEnum):
    """规则级别"""

    CRITICAL = "critical"
    STANDARD = "standard"


class DocumentType(StrEnum):
    """文档类型"""

    DELIVERABLE = "deliverable"
    RESEARCH = "research"
    PROTOCOL = "protocol"
    REPORT = "report"


# 角色 -> 规则作用域（全系统唯一一份）
ROLE_SCOPES: dict[AgentRole, RuleScope] = {
    AgentRole.COORDINATOR: RuleScope.COORDINATION,
    AgentRole.GROWTH: RuleScope.SOCIAL,
    AgentRole.TRADING: RuleScope.TRADING,
    AgentRole.BUILDER: RuleScope.BUILDING,
    AgentRole.SECURITY: RuleScope.SECURITY,
    AgentRole.JOBS: RuleScope.JOBS,
}


def scope_for_role(role: AgentRole | str) -> RuleScope:
    """返回角色对应的规则作用域，未知角色只适用 global 规则

    Args:
        role: Agent 角色（枚举或字符串）

    Returns:
        RuleScope
    """
    try:
        return ROLE_SCOPES[AgentRole(role)]
    except ValueError:
        return RuleScope.GLOBAL


def effective_status(status: TaskStatus, assignee_count: int) -> TaskStatus:
    """派生展示状态：inbox 且已有负责人时视为 assigned

    仅用于读取视图，不回写存储字段。

    Args:
        status: 存储的状态
        assignee_count: 当前负责人数量

    Returns:
        展示用状态
    """
    if status == TaskStatus.INBOX and assignee_count > 0:
        return TaskStatus.ASSIGNED
    return status
