"""Citadel Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import Activity
from .agent import Agent
from .document import Document
from .enums import (
    PRIORITY_ORDER,
    ROLE_SCOPES,
    AgentLevel,
    AgentRole,
    AgentStatus,
    DocumentType,
    NotificationType,
    RuleScope,
    RuleTier,
    TaskPriority,
    TaskStatus,
    effective_status,
    scope_for_role,
)
from .message import TaskMessage, TaskMessageView
from .notification import Notification, PendingNotification
from .rule import PreflightLog, PreflightResult, Rule
from .subscription import Subscription
from .task import Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "AgentStatus",
    "AgentLevel",
    "AgentRole",
    "NotificationType",
    "RuleScope",
    "RuleTier",
    "DocumentType",
    # 映射与派生视图
    "PRIORITY_ORDER",
    "ROLE_SCOPES",
    "scope_for_role",
    "effective_status",
    # 实体
    "Agent",
    "Task",
    "TaskMessage",
    "TaskMessageView",
    "Subscription",
    "Notification",
    "PendingNotification",
    "Document",
    "Activity",
    "Rule",
    "PreflightLog",
    "PreflightResult",
]
