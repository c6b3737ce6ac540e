"""Core 异常体系

数据类错误（引用不存在的 agent / task / rule）统一继承 CitadelError，
由 gateway 层映射为 404。
"""


class CitadelError(Exception):
    """Citadel 基础异常"""

    code: str = "CITADEL_ERROR"


class AgentNotFoundError(CitadelError):
    """Agent 不存在（按 ID 或名称查找失败）"""

    code = "AGENT_NOT_FOUND"

    def __init__(self, ref: str) -> None:
        super().__init__(f"Agent not found: {ref}")
        self.ref = ref


class TaskNotFoundError(CitadelError):
    """Task 不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class RuleNotFoundError(CitadelError):
    """Rule 不存在"""

    code = "RULE_NOT_FOUND"

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Rule with id {rule_id} does not exist")
        self.rule_id = rule_id
