"""In-process mutual exclusion keyed by resource id."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

logger = logging.getLogger(__name__)


class ResourceLockRegistry:
    """
    One ``asyncio.Lock`` per resource id.

    Writers that check for conflicts and then insert must hold the lock of the
    resource for the whole sequence. Locks are created on first use and
    dropped again once nobody holds or waits for them. The registry only
    serializes coroutines of one process; the relational store adds an
    advisory lock and an exclusion constraint for cross-process writers.
    """

    def __init__(self):
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: dict[UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, resource_id: UUID) -> AsyncIterator[float]:
        """
        Enter the critical section of a resource.

        Yields:
            Seconds spent waiting for the lock
        """
        lock = self._locks.setdefault(resource_id, asyncio.Lock())
        self._users[resource_id] = self._users.get(resource_id, 0) + 1

        started = time.perf_counter()
        try:
            async with lock:
                waited = time.perf_counter() - started
                if waited > 0.1:
                    logger.debug(
                        "Waited for resource lock",
                        extra={"resource_id": str(resource_id), "wait_ms": round(waited * 1000, 2)}
                    )
                yield waited
        finally:
            self._users[resource_id] -= 1
            if self._users[resource_id] == 0:
                del self._users[resource_id]
                self._locks.pop(resource_id, None)
