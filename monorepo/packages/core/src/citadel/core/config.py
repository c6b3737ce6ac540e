"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、共享密钥、分页上限、preflight 内容截断长度等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("CITADEL_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "CITADEL_DB_PATH",
        str(_get_base_dir() / "sqlite" / "citadel.db"),
    )


def get_api_key() -> str:
    """获取 X-Citadel-Key 共享密钥"""
    return os.environ.get("CITADEL_API_KEY", "citadel-dev-key")


# 每轮投递最多拉取的未投递通知数
UNDELIVERED_PAGE_SIZE: int = 50

# 近期列表查询上限（preflight 日志等）
RECENT_LIMIT: int = 100

# 失败日志查询上限
FAILURE_LIMIT: int = 50

# 活动流查询上限
ACTIVITY_LIMIT: int = 50

# preflight 日志中保存的内容片段长度
PREFLIGHT_CONTENT_MAX_LENGTH: int = int(
    os.environ.get("CITADEL_PREFLIGHT_CONTENT_MAX_LENGTH", "500")
)

# 未指定作者时通知上的默认显示名
DEFAULT_AUTHOR_NAME: str = "Someone"
SYSTEM_AUTHOR_NAME: str = "System"
DEFAULT_TASK_TITLE: str = "Untitled"

# 分配通知消息前缀（投递守护进程据此识别 assignment）
ASSIGNMENT_PREFIX: str = "You were assigned to: "
