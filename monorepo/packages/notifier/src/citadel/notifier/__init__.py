"""Citadel Notifier -- 通知投递守护进程

轮询控制面的未投递通知，经会话网关送达 agent 会话，
并把 agent 回复回写为任务评论 / 文档。
"""

from .alert_cache import BlockedAlertCache
from .citadel_client import CitadelClient
from .config import NotifierConfig, load_notifier_config
from .daemon import NotificationDaemon

# 异常
from .exceptions import (
    CitadelApiError,
    GatewayResponseError,
    GatewayUnreachableError,
    NotifierError,
)
from .gateway_client import SessionGatewayClient, normalize_session_key
from .models import (
    ContentBlockReply,
    DetailsReply,
    GatewayReply,
    GatewayResponse,
    NoReply,
    RawTextReply,
    decode_reply,
)

__all__ = [
    "NotificationDaemon",
    "BlockedAlertCache",
    "CitadelClient",
    "SessionGatewayClient",
    "normalize_session_key",
    "NotifierConfig",
    "load_notifier_config",
    "GatewayResponse",
    "GatewayReply",
    "DetailsReply",
    "ContentBlockReply",
    "RawTextReply",
    "NoReply",
    "decode_reply",
    "NotifierError",
    "GatewayUnreachableError",
    "GatewayResponseError",
    "CitadelApiError",
]
