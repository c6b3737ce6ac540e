"""Preflight 模式检查单元测试

测试内容：
1. 违规模式 / 必需模式
2. 前缀识别
3. 非法正则降级为子串判断
4. 空模式
"""

import pytest
from citadel.core.preflight import normalize_pattern, run_pattern_check


class TestNormalizePattern:
    """normalize_pattern"""

    @pytest.mark.parametrize(
        "raw",
        ["absence of ETH", "absence:ETH", "absent: ETH", "Missing:ETH", "  ABSENCE OF ETH"],
    )
    def test_required_prefixes(self, raw: str):
        assert normalize_pattern(raw) == ("ETH", True)

    def test_plain_pattern_is_violation(self):
        assert normalize_pattern(r"\bguarantee\b") == (r"\bguarantee\b", False)


class TestRunPatternCheck:
    """run_pattern_check"""

    def test_violation_pattern_fails_on_match(self):
        result = run_pattern_check("We GUARANTEE returns", "guarantee")
        assert result.passed is False
        assert result.details == "Violation found: guarantee"

    def test_violation_pattern_passes_without_match(self):
        result = run_pattern_check("returns are not promised", "guarantee")
        assert result.passed is True
        assert result.details is None

    def test_required_pattern_missing(self):
        """必需模式：内容缺少时失败"""
        result = run_pattern_check("I bought BTC", "absence of ETH")
        assert result.passed is False
        assert result.details == "Required pattern not found: ETH"

    def test_required_pattern_present(self):
        result = run_pattern_check("sold eth at noon", "absence of ETH")
        assert result.passed is True

    def test_empty_pattern_fails(self):
        result = run_pattern_check("anything", "missing:   ")
        assert result.passed is False
        assert result.details == "Empty check pattern"

    def test_invalid_regex_falls_back_to_substring(self):
        """非法正则降级为子串判断，details 附带错误"""
        result = run_pattern_check("contains [unclosed bracket", "[unclosed")
        assert result.passed is False
        assert result.details.startswith("Violation found: [unclosed. Regex error: ")

    def test_invalid_regex_passing_still_reports_error(self):
        result = run_pattern_check("clean content", "[unclosed")
        assert result.passed is True
        assert result.details.startswith("Regex error: ")
