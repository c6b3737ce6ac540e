"""Rule / PreflightLog / PreflightResult Domain Models"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import RuleScope, RuleTier


class Rule(BaseModel):
    """操作规则

    checkable=True 且 check_pattern 非空的规则参与 preflight 检查。
    check_pattern 以 "absence of " / "absence:" / "absent:" / "missing:" 开头时
    表示"内容中必须出现"，否则表示"内容中不得出现"。
    """

    rule_id: str = Field(description="唯一标识，ULID 格式")
    text: str = Field(description="规则正文")
    why: str = Field(default="", description="规则缘由")
    scope: RuleScope = Field(default=RuleScope.GLOBAL, description="作用域")
    tier: RuleTier = Field(default=RuleTier.STANDARD, description="级别")
    checkable: bool = Field(default=False, description="是否可自动检查")
    check_pattern: str | None = Field(default=None, description="检查用正则")
    active: bool = Field(default=True, description="是否启用")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")


class PreflightLog(BaseModel):
    """preflight 审计日志（每条被评估的规则一行）"""

    log_id: str = Field(description="唯一标识，ULID 格式")
    agent_id: str = Field(description="被检查的 agent")
    task_id: str | None = Field(default=None, description="关联任务")
    check_type: str = Field(description="检查类型，rule:<rule_id>")
    passed: bool = Field(description="是否通过")
    details: str | None = Field(default=None, description="失败原因")
    content: str = Field(description="被检查内容片段（截断）")
    created_at: datetime = Field(description="创建时间")


class PreflightResult(BaseModel):
    """单条规则的检查结果"""

    rule_id: str
    rule_text: str
    tier: RuleTier
    passed: bool
    details: str | None = None
