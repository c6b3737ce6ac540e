"""守护进程入口 -- python -m citadel.notifier

SIGINT / SIGTERM 只设置停止标记，当前轮投递跑完后退出。
"""

import asyncio
import signal

import structlog
from citadel.core.logging_config import setup_logfire, setup_logging

from .citadel_client import CitadelClient
from .config import load_notifier_config
from .daemon import NotificationDaemon
from .gateway_client import SessionGatewayClient

log = structlog.get_logger()


def _request_stop(daemon: NotificationDaemon, sig: signal.Signals) -> None:
    log.info("notifier_signal_received", signal=sig.name)
    daemon.stop()


async def run_daemon() -> None:
    """构建客户端并运行守护进程，退出时关闭连接"""
    config = load_notifier_config()
    citadel = CitadelClient(
        config.citadel_url,
        config.citadel_api_key.get_secret_value(),
        timeout_s=config.simple_timeout_s,
    )
    gateway = SessionGatewayClient(
        config.gateway_url,
        config.gateway_token.get_secret_value(),
    )
    daemon = NotificationDaemon(config, citadel, gateway)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_stop, daemon, sig)

    try:
        await daemon.run()
    finally:
        await citadel.aclose()
        await gateway.aclose()


def main() -> None:
    setup_logging()
    setup_logfire()
    asyncio.run(run_daemon())


if __name__ == "__main__":
    main()
