"""投递给 agent 会话的提示文本

提示文本面向 agent，使用英文。
"""

from citadel.core.models import TaskMessageView
from pydantic import BaseModel, Field

NOTIFY_PREFIX = "🔔 Citadel"

TEAMMATE_HINT = (
    "If you need help from a teammate, @mention them in a comment. "
    "The comment will notify them and they'll respond on the task."
)


class TaskContext(BaseModel):
    """投递 mention 时附带的任务上下文（获取失败时各字段为空）"""

    task_id: str
    title: str = "Unknown task"
    description: str | None = None
    recent_comments: list[TaskMessageView] = Field(default_factory=list)

    def render(self) -> str:
        lines: list[str] = []
        if self.description:
            lines.append(f"Task description: {self.description}")
        if self.recent_comments:
            if lines:
                lines.append("")
            lines.append("Recent comments on this task:")
            lines.extend(
                f"- {c.author_name}: {c.content}" for c in self.recent_comments
            )
        return "\n".join(lines)


def ping_prompt(message: str) -> str:
    """普通通知：只告知，不期望回复"""
    return f"{NOTIFY_PREFIX}: {message}"


def assignment_prompt(context: TaskContext) -> str:
    """任务分配：spawn 一个有完整工具权限的工作会话"""
    task_id = context.task_id
    return "\n".join(
        [
            f'{NOTIFY_PREFIX} TASK ASSIGNED: "{context.title}"',
            f"Task ID: {task_id}",
            context.render(),
            "",
            "You've been assigned this task. Do the work:",
            "",
            f"1. Post an acknowledgment comment on task {task_id}.",
            "2. Move the task to in_progress.",
            "3. Do the actual work with your tools.",
            "4. Post progress updates as comments.",
            "5. Post deliverables as documents on the task.",
            "6. When done, move the task to done.",
            "",
            TEAMMATE_HINT,
            "",
            "If something fails, do not stop: try a different approach and log the failure "
            "as a comment. If truly blocked, move the task back to assigned and explain "
            "what's blocking.",
        ]
    )


def delegation_prompt(context: TaskContext, message: str) -> str:
    """coordinator 被要求分派工作：spawn 一个负责拆分与分配的会话"""
    task_id = context.task_id
    return "\n".join(
        [
            f'{NOTIFY_PREFIX} DELEGATION REQUEST on "{context.title}": {message}',
            f"Task ID: {task_id}",
            context.render(),
            "",
            "You are asked to delegate this work:",
            "",
            "1. Break the request into concrete subtasks.",
            "2. Create one task per subtask and assign the teammate whose role fits best.",
            f"3. Comment on task {task_id} with the list of subtasks and owners.",
            "4. Track the subtasks and report back on this task when they are done.",
        ]
    )


def mention_prompt(context: TaskContext, message: str) -> str:
    """对话式 mention：发送并等待回复"""
    task_id = context.task_id
    return "\n".join(
        [
            f'{NOTIFY_PREFIX} @mention on task "{context.title}": {message}',
            f"Task ID: {task_id}",
            context.render(),
            "",
            "Reply with a helpful response. " + TEAMMATE_HINT,
            "",
            "To attach a document, format the reply as:",
            "---COMMENT---",
            "<short comment>",
            "---DOCUMENT_TITLE---",
            "<title>",
            "---DOCUMENT---",
            "<document body>",
            "",
            "Reply NO_REPLY if nothing is needed.",
        ]
    )


def blocked_alert_prompt(agent_name: str, current_task: str | None) -> str:
    """blocked agent 告警，发送给 supervisor 会话"""
    detail = f" (working on: {current_task})" if current_task else ""
    return (
        f"{NOTIFY_PREFIX} ALERT: {agent_name} is blocked{detail}. "
        "Check their tasks and help unblock them."
    )
