# milestone_guard/leases.py
"""
Per-milestone leases.

At most one risk assessment may be in flight per milestone id, since an
assessment appends risk factors and overwrites the risk level. Leases are
plain asyncio locks keyed by id and dropped once nobody holds or waits on
them.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class MilestoneLeases:
    """Keyed asyncio locks with reference counting."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, milestone_id: str) -> AsyncIterator[None]:
        """Hold the lease for ``milestone_id`` for the duration of the block."""
        lock = self._locks.setdefault(milestone_id, asyncio.Lock())
        self._users[milestone_id] = self._users.get(milestone_id, 0) + 1
        if lock.locked():
            logger.warning(f"Waiting for in-flight assessment of milestone {milestone_id}")
        try:
            async with lock:
                yield
        finally:
            self._users[milestone_id] -= 1
            if self._users[milestone_id] == 0:
                del self._users[milestone_id]
                del self._locks[milestone_id]

    def is_held(self, milestone_id: str) -> bool:
        lock = self._locks.get(milestone_id)
        return lock is not None and lock.locked()
