"""会话网关响应模型

网关 POST /tools/invoke 返回 {"ok": bool, "result": ...}，
其中 agent 回复文本可能出现在多种位置。这里把它们收敛为一个显式的和类型
GatewayReply，并由唯一的 decode_reply 按固定顺序识别：

1. result.details.reply                          -> DetailsReply
2. result.content（或 result 本身）为 block 列表，
   取第一个 text block                             -> ContentBlockReply / NoReply
3. result.content（或 result 本身）为非 JSON 字符串 -> RawTextReply
4. 其他                                            -> NoReply
"""

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class GatewayResponse(BaseModel):
    """网关工具调用响应"""

    ok: bool = Field(default=False, description="调用是否被网关接受")
    result: Any = Field(default=None, description="工具结果（结构随工具而变）")
    error: Any = Field(default=None, description="失败时的错误信息")

    @property
    def spawn_accepted(self) -> bool:
        """sessions_spawn 是否被接受（result.details.status == "accepted"）"""
        if not self.ok or not isinstance(self.result, dict):
            return False
        details = self.result.get("details")
        return isinstance(details, dict) and details.get("status") == "accepted"


class DetailsReply(BaseModel):
    kind: Literal["details"] = "details"
    text: str


class ContentBlockReply(BaseModel):
    kind: Literal["content_block"] = "content_block"
    text: str


class RawTextReply(BaseModel):
    kind: Literal["raw_text"] = "raw_text"
    text: str


class NoReply(BaseModel):
    kind: Literal["none"] = "none"
    reason: str = ""

    @property
    def text(self) -> None:
        return None


GatewayReply = Annotated[
    DetailsReply | ContentBlockReply | RawTextReply | NoReply,
    Field(discriminator="kind"),
]


def _decode_text_block(text: str) -> GatewayReply:
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        status = parsed.get("status")
        if status in ("error", "timeout"):
            return NoReply(reason=f"session {status}")
        reply = parsed.get("reply")
        if isinstance(reply, str) and reply:
            return ContentBlockReply(text=reply)

    if text.lstrip().startswith("{"):
        return NoReply(reason="structured payload without reply")
    return ContentBlockReply(text=text)


def decode_reply(result: Any) -> GatewayReply:
    """从网关工具结果中识别 agent 回复

    Args:
        result: GatewayResponse.result

    Returns:
        GatewayReply 的某个变体；无法识别时返回 NoReply
    """
    if isinstance(result, dict):
        details = result.get("details")
        if isinstance(details, dict):
            reply = details.get("reply")
            if isinstance(reply, str) and reply:
                return DetailsReply(text=reply)

    content = result.get("content", result) if isinstance(result, dict) else result

    if isinstance(content, list):
        for block in content:
            if (
                isinstance(block, dict)
                and block.get("type") == "text"
                and isinstance(block.get("text"), str)
            ):
                return _decode_text_block(block["text"])
        return NoReply(reason="no text block")

    if isinstance(content, str) and content and not content.lstrip().startswith("{"):
        return RawTextReply(text=content)

    return NoReply(reason="unrecognized result shape")
