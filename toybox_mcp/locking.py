"""
Cross-process advisory lock for the registry document.

The lock is a marker file next to the target (``<file>.lock``) created with
O_EXCL, so it is respected by every process that goes through ConfigLock,
including other server instances. Acquisition is bounded: a fixed number of
retries with exponential backoff. A marker older than the staleness window
is presumed abandoned by a crashed holder and is removed before retrying;
a live holder keeps its marker fresh for as long as it holds the lock.
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

from filelock import SoftFileLock, Timeout

from toybox_mcp.exceptions import ConfigIOError, LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockOptions:
    """
    Retry and staleness policy for ConfigLock.

    A marker whose mtime is older than `stale` seconds is reclaimed. hold()
    refreshes the marker every stale/3 seconds, so only a holder whose event
    loop is blocked for longer than `stale` can lose the lock to another process.
    """
    retries: int = 5
    stale: float = 5.0  # seconds
    min_delay: float = 0.2  # seconds before the first retry
    factor: float = 2.0
    max_delay: float = 2.0

    def delay(self, attempt: int) -> float:
        return min(self.min_delay * (self.factor ** attempt), self.max_delay)


def lock_path_for(target: Path) -> Path:
    return target.with_name(f"{target.name}.lock")


class ConfigLock:
    """
    Scoped exclusive lock on a single file path.

    Not reentrant: create one per critical section.
    """

    def __init__(self, target: Path, options: LockOptions | None = None):
        self.target = target
        self.lock_path = lock_path_for(target)
        self.options = options or LockOptions()
        self._lock = SoftFileLock(str(self.lock_path), timeout=0)

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def _try_acquire(self) -> bool:
        try:
            self._lock.acquire(timeout=0)
        except Timeout:
            return False
        except OSError as e:
            raise ConfigIOError(f"Failed to create lock {self.lock_path}: {e}") from e
        return True

    def _reclaim_if_stale(self) -> bool:
        """Remove an abandoned marker. Returns True if one was removed."""
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            # Released between our attempt and the check
            return True
        if age <= self.options.stale:
            return False

        logger.warning("Reclaiming stale lock %s (age %.1fs)", self.lock_path, age)
        self.lock_path.unlink(missing_ok=True)
        return True

    async def acquire(self) -> None:
        """
        Acquire the lock, retrying with backoff.

        Raises:
            LockTimeoutError: if the lock is still held after all retries.
        """
        self.target.parent.mkdir(parents=True, exist_ok=True)
        attempts = self.options.retries + 1

        for attempt in range(attempts):
            if self._try_acquire():
                return
            if self._reclaim_if_stale() and self._try_acquire():
                return
            if attempt < attempts - 1:
                delay = self.options.delay(attempt)
                logger.debug("Lock %s busy, retrying in %.2fs", self.lock_path, delay)
                await asyncio.sleep(delay)

        raise LockTimeoutError(self.lock_path, attempts)

    def release(self) -> None:
        if self._lock.is_locked:
            self._lock.release()

    def refresh(self) -> None:
        """Bump the marker's mtime so a long hold is not mistaken for an abandoned one."""
        if not self._lock.is_locked:
            return
        try:
            os.utime(self.lock_path)
        except FileNotFoundError:
            logger.warning("Lock %s vanished while held", self.lock_path)

    async def _keep_fresh(self) -> None:
        interval = self.options.stale / 3
        while True:
            await asyncio.sleep(interval)
            self.refresh()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator["ConfigLock"]:
        """
        Hold the lock for the duration of the block, releasing on every exit path.

        The marker is refreshed in the background while the block runs.
        """
        await self.acquire()
        keeper = asyncio.create_task(self._keep_fresh())
        try:
            yield self
        finally:
            keeper.cancel()
            with suppress(asyncio.CancelledError):
                await keeper
            self.release()
