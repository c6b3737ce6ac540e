"""请求体字段别名与响应序列化辅助

agent 名称字段按 agentName -> name -> agent 的顺序接受，
任务 ID 接受 taskId / task_id。
"""

from citadel.core.models import Task
from pydantic import AliasChoices

AGENT_NAME = AliasChoices("agentName", "agent_name", "name", "agent")
TASK_ID = AliasChoices("taskId", "task_id")
ASSIGNEE_NAMES = AliasChoices("assigneeNames", "assignees", "agents")
CREATOR_NAME = AliasChoices("creatorName", "creator", "name", "agent")


def task_payload(task: Task) -> dict:
    """任务序列化，附带派生展示状态"""
    data = task.model_dump(mode="json")
    data["display_status"] = task.display_status.value
    return data
