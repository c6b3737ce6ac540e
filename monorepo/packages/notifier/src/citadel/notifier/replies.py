"""agent 回复解析

回复可以用分隔标记同时携带一条评论和一份文档：

    ---COMMENT---
    <评论>
    ---DOCUMENT_TITLE---      （可选）
    <标题>
    ---DOCUMENT---
    <文档正文>

只有同时出现 COMMENT 与 DOCUMENT 标记时才拆分；缺失标记从不抛异常。
"""

import re
from typing import NamedTuple

from citadel.core.models import DocumentType

COMMENT_MARKER = "---COMMENT---"
TITLE_MARKER = "---DOCUMENT_TITLE---"
DOCUMENT_MARKER = "---DOCUMENT---"

# 正文长度超过此值才作为文档发布
MIN_DOCUMENT_LENGTH = 50

# 未找到 COMMENT 段时，评论取回复前若干字符
_FALLBACK_COMMENT_LENGTH = 200

_NO_ACTION_REPLIES = {"NO_REPLY", "HEARTBEAT_OK"}

_COMMENT_RE = re.compile(r"---COMMENT---\s*(.*?)(?=---DOCUMENT_TITLE---|---DOCUMENT---|\Z)", re.S)
_TITLE_RE = re.compile(r"---DOCUMENT_TITLE---\s*(.*?)(?=---DOCUMENT---|\Z)", re.S)
_DOCUMENT_RE = re.compile(r"---DOCUMENT---\s*(.*)\Z", re.S)

# 按顺序匹配，先命中者胜出
_DOCUMENT_KEYWORDS: list[tuple[DocumentType, tuple[str, ...]]] = [
    (DocumentType.RESEARCH, ("competitor", "analysis", "research", "findings")),
    (DocumentType.REPORT, ("report", "summary", "results")),
    (DocumentType.PROTOCOL, ("spec", "plan", "architecture", "protocol")),
]


class ParsedReply(NamedTuple):
    """拆分后的回复"""

    comment: str
    document_title: str
    document_body: str | None

    @property
    def has_document(self) -> bool:
        return self.document_body is not None and len(self.document_body) > MIN_DOCUMENT_LENGTH


def is_no_action(reply: str | None) -> bool:
    """空回复或约定的"无需处理"标记"""
    if reply is None:
        return True
    stripped = reply.strip()
    return not stripped or stripped in _NO_ACTION_REPLIES


def has_markers(reply: str) -> bool:
    return COMMENT_MARKER in reply and DOCUMENT_MARKER in reply


def parse_reply_sections(reply: str, default_title: str) -> ParsedReply | None:
    """按标记拆分回复

    Args:
        reply: agent 回复全文
        default_title: 未提供 DOCUMENT_TITLE 时使用的标题

    Returns:
        ParsedReply；回复不含 COMMENT + DOCUMENT 标记时返回 None（整体作为评论处理）
    """
    text = reply.strip()
    if not has_markers(text):
        return None

    comment_match = _COMMENT_RE.search(text)
    title_match = _TITLE_RE.search(text)
    document_match = _DOCUMENT_RE.search(text)

    comment = comment_match.group(1).strip() if comment_match else text[:_FALLBACK_COMMENT_LENGTH]
    title = title_match.group(1).strip() if title_match else ""
    body = document_match.group(1).strip() if document_match else None

    return ParsedReply(
        comment=comment,
        document_title=title or default_title,
        document_body=body or None,
    )


def detect_document_type(content: str) -> DocumentType:
    """按关键词推断文档类型，未命中时为 deliverable"""
    lower = content.lower()
    for doc_type, keywords in _DOCUMENT_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return doc_type
    return DocumentType.DELIVERABLE
