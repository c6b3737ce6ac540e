"""Preflight 模式检查 -- 纯函数部分

规则的 check_pattern 有两种模式：
- 违规模式（默认）：内容匹配即失败
- 必需模式（前缀 "absence of " / "absence:" / "absent:" / "missing:"）：内容不匹配即失败

匹配大小写不敏感。正则编译失败时降级为大小写不敏感的子串包含判断，
并在 details 中附带错误信息。
"""

import re
from typing import NamedTuple

_REQUIRED_PREFIXES = ("absence of ", "absence:", "absent:", "missing:")


class PatternCheck(NamedTuple):
    """单次模式检查结果"""

    passed: bool
    details: str | None


def normalize_pattern(raw: str) -> tuple[str, bool]:
    """剥离必需模式前缀

    Args:
        raw: 规则中配置的原始 pattern

    Returns:
        (pattern, required) -- required=True 表示内容中必须出现该模式
    """
    trimmed = raw.strip()
    lowered = trimmed.lower()
    for prefix in _REQUIRED_PREFIXES:
        if lowered.startswith(prefix):
            return trimmed[len(prefix):].strip(), True
    return trimmed, False


def run_pattern_check(content: str, raw_pattern: str) -> PatternCheck:
    """对内容执行一条规则的模式检查"""
    pattern, required = normalize_pattern(raw_pattern)
    if not pattern:
        return PatternCheck(passed=False, details="Empty check pattern")

    regex_error: str | None = None
    try:
        matched = re.search(pattern, content, re.IGNORECASE) is not None
    except re.error as e:
        regex_error = str(e)
        matched = pattern.lower() in content.lower()

    passed = matched if required else not matched

    details: str | None = None
    if not passed:
        if required:
            details = f"Required pattern not found: {pattern}"
        else:
            details = f"Violation found: {pattern}"
    if regex_error is not None:
        suffix = f"Regex error: {regex_error}"
        details = f"{details}. {suffix}" if details else suffix

    return PatternCheck(passed=passed, details=details)
