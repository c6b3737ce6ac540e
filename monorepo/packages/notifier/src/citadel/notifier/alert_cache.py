"""BlockedAlertCache -- blocked agent 告警去重

进程内状态，归守护进程实例所有（重启即清空）：
agent 在保持 blocked 期间只告警一次，离开 blocked 后从缓存移除，
再次 blocked 时重新告警。
"""

import asyncio
from collections.abc import Iterable


class BlockedAlertCache:
    """已告警的 blocked agent 集合"""

    def __init__(self) -> None:
        self._alerted: set[str] = set()
        self._lock = asyncio.Lock()

    async def needs_alert(self, agent_id: str) -> bool:
        async with self._lock:
            return agent_id not in self._alerted

    async def mark_alerted(self, agent_id: str) -> None:
        async with self._lock:
            self._alerted.add(agent_id)

    async def prune(self, still_blocked: Iterable[str]) -> set[str]:
        """移除已不再 blocked 的 agent

        Returns:
            被移除的 agent_id 集合
        """
        keep = set(still_blocked)
        async with self._lock:
            removed = self._alerted - keep
            self._alerted &= keep
        return removed

    async def reset(self) -> None:
        async with self._lock:
            self._alerted.clear()

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._alerted

    def __len__(self) -> int:
        return len(self._alerted)
