"""NotifierConfig -- 投递守护进程配置加载

从环境变量加载配置；数值非法时记录告警并回退默认值，不阻塞启动。
"""

import os
from collections.abc import Callable

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class NotifierConfig(BaseModel):
    """投递守护进程配置 -- 从环境变量加载

    环境变量:
        CITADEL_URL: Citadel 控制面地址（默认 http://127.0.0.1:8000）
        CITADEL_API_KEY: X-Citadel-Key 共享密钥
        GATEWAY_URL: 会话网关地址（默认 http://127.0.0.1:18789）
        GATEWAY_TOKEN: 会话网关 Bearer token
        CITADEL_POLL_INTERVAL_S: 轮询间隔（秒，默认 3）
        CITADEL_SIMPLE_TIMEOUT_S: 普通调用超时（秒，默认 10）
        CITADEL_REQUEST_TIMEOUT_S: 等待 agent 回复的超时（秒，默认 60）
        CITADEL_SPAWN_RUN_TIMEOUT_S: spawn 会话运行时长上限（秒，默认 300）
        CITADEL_BLOCKED_CHECK_EVERY: 每 N 轮检查一次 blocked agent（默认 10）
        CITADEL_SUPERVISOR_SESSION_KEY: blocked 告警接收会话（默认取 coordinator）
    """

    citadel_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Citadel 控制面基础 URL",
    )
    citadel_api_key: SecretStr = Field(
        default=SecretStr("citadel-dev-key"),
        description="X-Citadel-Key 共享密钥",
    )
    gateway_url: str = Field(
        default="http://127.0.0.1:18789",
        description="会话网关基础 URL",
    )
    gateway_token: SecretStr = Field(
        default=SecretStr(""),
        description="会话网关 Bearer token",
    )
    poll_interval_s: float = Field(default=3.0, gt=0, description="轮询间隔（秒）")
    simple_timeout_s: float = Field(default=10.0, gt=0, description="普通调用超时（秒）")
    request_timeout_s: float = Field(default=60.0, gt=0, description="等待回复超时（秒）")
    spawn_run_timeout_s: int = Field(default=300, ge=1, description="spawn 会话运行上限（秒）")
    blocked_check_every: int = Field(default=10, ge=1, description="blocked 检查周期（轮）")
    supervisor_session_key: str | None = Field(
        default=None,
        description="blocked 告警接收会话，未设置时取 coordinator agent 的会话",
    )
    page_size: int = Field(default=50, ge=1, le=50, description="每轮拉取的通知数上限")


def _read_number(
    kwargs: dict,
    env_var: str,
    field: str,
    cast: Callable[[str], float | int],
) -> None:
    """读取数值型环境变量；无法解析或超出字段约束时记录告警并保留默认值"""
    if val := os.environ.get(env_var):
        try:
            value = cast(val)
            # 单独校验该字段（ValidationError 是 ValueError 的子类）
            NotifierConfig.model_validate({field: value})
        except ValueError:
            log.warning(
                "invalid_notifier_config",
                env_var=env_var,
                value=val,
                fallback=NotifierConfig.model_fields[field].default,
            )
        else:
            kwargs[field] = value


def load_notifier_config() -> NotifierConfig:
    """从环境变量加载投递守护进程配置

    Returns:
        NotifierConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("CITADEL_URL"):
        kwargs["citadel_url"] = val.rstrip("/")

    if val := os.environ.get("CITADEL_API_KEY"):
        kwargs["citadel_api_key"] = SecretStr(val)

    if val := os.environ.get("GATEWAY_URL"):
        kwargs["gateway_url"] = val.rstrip("/")

    if val := os.environ.get("GATEWAY_TOKEN"):
        kwargs["gateway_token"] = SecretStr(val)

    if val := os.environ.get("CITADEL_SUPERVISOR_SESSION_KEY"):
        kwargs["supervisor_session_key"] = val

    _read_number(kwargs, "CITADEL_POLL_INTERVAL_S", "poll_interval_s", float)
    _read_number(kwargs, "CITADEL_SIMPLE_TIMEOUT_S", "simple_timeout_s", float)
    _read_number(kwargs, "CITADEL_REQUEST_TIMEOUT_S", "request_timeout_s", float)
    _read_number(kwargs, "CITADEL_SPAWN_RUN_TIMEOUT_S", "spawn_run_timeout_s", int)
    _read_number(kwargs, "CITADEL_BLOCKED_CHECK_EVERY", "blocked_check_every", int)

    return NotifierConfig(**kwargs)
