"""
Per-project write serialization.

Every mutating workflow call for a project runs while holding that
project's lock, so within one process there is a single writer per
project. Cross-process safety comes from the conditional writes in the
repositories.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class ProjectLockRegistry:
    """Hands out one asyncio.Lock per project id.

    A lock is dropped once no caller holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def get(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock

    def is_locked(self, project_id: str) -> bool:
        lock = self._locks.get(project_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, project_id: str) -> AsyncIterator[None]:
        """Hold the lock of a project for the duration of the block.

        The lock is not reentrant: code running inside the block must not
        call another locking entry point for the same project.
        """
        lock = self.get(project_id)
        self._users[project_id] = self._users.get(project_id, 0) + 1
        if lock.locked():
            logger.debug(f"Waiting for project lock {project_id}")
        try:
            async with lock:
                yield
        finally:
            self._users[project_id] -= 1
            if not self._users[project_id]:
                del self._users[project_id]
                self._locks.pop(project_id, None)
