"""Mention 提取 -- 从自由文本中解析 @name

名称语法：@ 后跟 ASCII 字母、数字、下划线或连字符。
提取结果保序、按小写去重、保留首次出现时的大小写。
"""

import re
from collections.abc import Iterable

from .models.agent import Agent

MENTION_PATTERN = re.compile(r"@([A-Za-z0-9_-]+)")


def extract_mention_names(content: str) -> list[str]:
    """提取文本中的 @mention 名称

    Args:
        content: 评论正文

    Returns:
        去重后的名称列表，例如 "hi @Bob and @bob" -> ["Bob"]
    """
    seen: set[str] = set()
    names: list[str] = []
    for match in MENTION_PATTERN.finditer(content):
        name = match.group(1)
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        names.append(name)
    return names


def resolve_mentions(
    names: Iterable[str],
    agents: Iterable[Agent],
    exclude_agent_id: str | None = None,
) -> list[Agent]:
    """将名称解析为已登记的 agent

    大小写不敏感匹配；无法解析的名称静默丢弃；作者自身被排除；
    同一 agent 最多出现一次。
    """
    by_name = {agent.name.lower(): agent for agent in agents}
    resolved: list[Agent] = []
    seen_ids: set[str] = set()
    for name in names:
        agent = by_name.get(name.lower())
        if agent is None:
            continue
        if agent.agent_id == exclude_agent_id or agent.agent_id in seen_ids:
            continue
        seen_ids.add(agent.agent_id)
        resolved.append(agent)
    return resolved
