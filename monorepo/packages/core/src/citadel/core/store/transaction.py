"""原子写入封装

服务层的每个写操作在 atomic() 内执行：
1. 获取 StoreGroup 写锁（共享连接上的并发请求串行化）
2. 执行 read-then-patch 写入
3. 成功 commit，任何异常 rollback 后原样抛出
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from . import StoreGroup


@asynccontextmanager
async def atomic(store_group: "StoreGroup") -> AsyncIterator["StoreGroup"]:
    """在同一事务内执行一组写入

    Args:
        store_group: 共享连接的 Store 实例组

    Raises:
        Exception: 块内任何异常都会触发回滚并重新抛出
    """
    async with store_group.write_lock:
        try:
            yield store_group
            await store_group.conn.commit()
        except Exception:
            await store_group.conn.rollback()
            raise
